from datetime import datetime

from backend.models.user import User
from backend.schemas.common import CamelModel, Pagination


class UserSummary(CamelModel):
    id: int
    name: str
    email: str
    role: str
    avatar: str | None = None


class UserResponse(CamelModel):
    id: int
    email: str
    name: str
    role: str
    is_active: bool
    department: str | None = None
    student_id: str | None = None
    avatar: str | None = None
    created_at: datetime
    last_login: datetime | None = None


class UserEnvelope(CamelModel):
    user: UserResponse


class UserListResponse(CamelModel):
    users: list[UserResponse]
    pagination: Pagination


def summarize_user(user: User | None) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary.model_validate(user)
