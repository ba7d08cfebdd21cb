"""Shared response building blocks.

Responses are serialized with camelCase keys (``isResolved``, ``createdAt``)
because that is what the front end reads; Python code keeps snake_case.
"""
import math

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Query

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    current: int
    pages: int
    total: int
    limit: int


class MessageResponse(CamelModel):
    message: str


def paginate(query: Query, page: int, limit: int) -> tuple[list, Pagination]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    pagination = Pagination(
        current=page,
        pages=math.ceil(total / limit) if total else 0,
        total=total,
        limit=limit,
    )
    return items, pagination
