from datetime import datetime

from backend.models.question import Question
from backend.schemas.common import CamelModel, Pagination
from backend.schemas.user import UserSummary, summarize_user


class QuestionResponse(CamelModel):
    id: int
    title: str
    content: str
    category: str
    priority: str
    author_id: int
    author: UserSummary | None = None
    is_resolved: bool
    is_archived: bool
    views: int
    likes: list[int]
    like_count: int
    answer_count: int
    created_at: datetime
    updated_at: datetime


class QuestionEnvelope(CamelModel):
    question: QuestionResponse


class QuestionListResponse(CamelModel):
    questions: list[QuestionResponse]
    pagination: Pagination


class LikeResponse(CamelModel):
    liked: bool
    likes: int


def serialize_question(question: Question) -> QuestionResponse:
    like_ids = [user.id for user in question.likes]
    return QuestionResponse(
        id=question.id,
        title=question.title,
        content=question.content,
        category=question.category,
        priority=question.priority,
        author_id=question.author_id,
        author=summarize_user(question.author),
        is_resolved=bool(question.is_resolved),
        is_archived=bool(question.is_archived),
        views=question.views or 0,
        likes=like_ids,
        like_count=len(like_ids),
        answer_count=len(question.answers),
        created_at=question.created_at,
        updated_at=question.updated_at,
    )
