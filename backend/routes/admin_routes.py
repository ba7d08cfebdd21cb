from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_moderator
from backend.database import get_db
from backend.models.answer import Answer
from backend.models.question import Question
from backend.models.user import User, UserRole
from backend.routes.question_routes import SORT_ORDERS, filter_questions
from backend.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, CamelModel, MessageResponse, Pagination, paginate
from backend.schemas.question import QuestionEnvelope, QuestionListResponse, serialize_question
from backend.schemas.user import UserEnvelope, UserListResponse, UserResponse, UserSummary, summarize_user
from backend.services import moderation

router = APIRouter(tags=['admin'], dependencies=[Depends(require_moderator)])


class UpdateRoleRequest(CamelModel):
    role: str


class UserStats(CamelModel):
    total: int
    active: int
    students: int
    teachers: int
    admins: int


class ContentStats(CamelModel):
    questions: int
    resolved: int
    archived: int
    answers: int


class Stats(CamelModel):
    users: UserStats
    content: ContentStats


class StatsResponse(CamelModel):
    stats: Stats


class ModerationLogResponse(CamelModel):
    id: int
    action: str
    target_type: str
    target_id: int
    details: str | None = None
    actor: UserSummary | None = None
    created_at: datetime


class ModerationLogListResponse(CamelModel):
    logs: list[ModerationLogResponse]
    pagination: Pagination


@router.get('/stats', response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)):
    role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())

    return StatsResponse(
        stats=Stats(
            users=UserStats(
                total=db.query(User).count(),
                active=db.query(User).filter(User.is_active.is_(True)).count(),
                students=role_counts.get(UserRole.STUDENT.value, 0),
                teachers=role_counts.get(UserRole.TEACHER.value, 0),
                admins=role_counts.get(UserRole.ADMIN.value, 0),
            ),
            content=ContentStats(
                questions=db.query(Question).count(),
                resolved=db.query(Question).filter(Question.is_resolved.is_(True)).count(),
                archived=db.query(Question).filter(Question.is_archived.is_(True)).count(),
                answers=db.query(Answer).count(),
            ),
        )
    )


@router.get('/users', response_model=UserListResponse)
def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    role: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role.strip().lower())
    if search and search.strip():
        pattern = f'%{search.strip()}%'
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    users, pagination = paginate(query.order_by(User.created_at.desc(), User.id.desc()), page, limit)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        pagination=pagination,
    )


@router.patch('/users/{user_id}/role', response_model=UserEnvelope)
def update_user_role(
    user_id: int,
    data: UpdateRoleRequest,
    current_user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    user = moderation.update_user_role(db, user_id, data.role, actor=current_user)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.patch('/users/{user_id}/status', response_model=UserEnvelope)
def toggle_user_status(
    user_id: int,
    current_user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    user = moderation.toggle_user_status(db, user_id, actor=current_user)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.get('/questions', response_model=QuestionListResponse)
def list_questions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    is_resolved: bool | None = Query(default=None, alias='isResolved'),
    archived: bool | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = filter_questions(db.query(Question), search, category, priority, is_resolved)
    if archived is not None:
        query = query.filter(Question.is_archived.is_(archived))

    questions, pagination = paginate(query.order_by(*SORT_ORDERS['newest']), page, limit)
    return QuestionListResponse(
        questions=[serialize_question(question) for question in questions],
        pagination=pagination,
    )


@router.patch('/questions/{question_id}/archive', response_model=QuestionEnvelope)
def archive_question(
    question_id: int,
    current_user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    question = moderation.archive_question(db, question_id, actor=current_user)
    return QuestionEnvelope(question=serialize_question(question))


@router.delete('/questions/{question_id}', response_model=MessageResponse)
def delete_question(
    question_id: int,
    current_user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    moderation.delete_question(db, question_id, actor=current_user)
    return MessageResponse(message='Question deleted successfully')


@router.delete('/answers/{answer_id}', response_model=MessageResponse)
def delete_answer(
    answer_id: int,
    current_user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    moderation.delete_answer(db, answer_id, actor=current_user)
    return MessageResponse(message='Answer deleted successfully')


@router.get('/logs', response_model=ModerationLogListResponse)
def list_logs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    logs, pagination = paginate(moderation.list_logs(db), page, limit)
    return ModerationLogListResponse(
        logs=[
            ModerationLogResponse(
                id=entry.id,
                action=entry.action,
                target_type=entry.target_type,
                target_id=entry.target_id,
                details=entry.details,
                actor=summarize_user(entry.actor),
                created_at=entry.created_at,
            )
            for entry in logs
        ],
        pagination=pagination,
    )
