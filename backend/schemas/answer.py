from datetime import datetime

from backend.models.answer import Answer, Comment
from backend.schemas.common import CamelModel, Pagination
from backend.schemas.user import UserSummary, summarize_user


class CommentResponse(CamelModel):
    id: int
    answer_id: int
    author_id: int
    author: UserSummary | None = None
    content: str
    likes: list[int]
    created_at: datetime


class AnswerResponse(CamelModel):
    id: int
    content: str
    question_id: int
    author_id: int
    author: UserSummary | None = None
    is_accepted: bool
    is_verified: bool
    likes: list[int]
    like_count: int
    comments: list[CommentResponse]
    created_at: datetime
    updated_at: datetime


class AnswerEnvelope(CamelModel):
    answer: AnswerResponse


class CommentEnvelope(CamelModel):
    comment: CommentResponse


class AnswerSummary(CamelModel):
    total_likes: int
    accepted: int


class AnswerListResponse(CamelModel):
    answers: list[AnswerResponse]
    pagination: Pagination | None = None
    summary: AnswerSummary | None = None


def serialize_comment(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        answer_id=comment.answer_id,
        author_id=comment.author_id,
        author=summarize_user(comment.author),
        content=comment.content,
        likes=[user.id for user in comment.likes],
        created_at=comment.created_at,
    )


def serialize_answer(answer: Answer) -> AnswerResponse:
    like_ids = [user.id for user in answer.likes]
    return AnswerResponse(
        id=answer.id,
        content=answer.content,
        question_id=answer.question_id,
        author_id=answer.author_id,
        author=summarize_user(answer.author),
        is_accepted=bool(answer.is_accepted),
        is_verified=bool(answer.is_verified),
        likes=like_ids,
        like_count=len(like_ids),
        comments=[serialize_comment(comment) for comment in answer.comments],
        created_at=answer.created_at,
        updated_at=answer.updated_at,
    )
