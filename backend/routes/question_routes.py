from fastapi import APIRouter, Depends, Query, status
from pydantic import field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.auth.permissions import ADMIN_ROLES, MODERATOR_ROLES, ensure_owner_or_roles, is_moderator
from backend.core import errors
from backend.database import get_db
from backend.models.question import CATEGORIES, PRIORITIES, Question
from backend.models.user import User
from backend.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, CamelModel, MessageResponse, paginate
from backend.schemas.question import (
    LikeResponse,
    QuestionEnvelope,
    QuestionListResponse,
    serialize_question,
)
from backend.services import moderation

router = APIRouter(tags=['questions'])

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 10000
SORT_ORDERS = {
    'newest': (Question.created_at.desc(), Question.id.desc()),
    'oldest': (Question.created_at.asc(), Question.id.asc()),
    'views': (Question.views.desc(), Question.id.desc()),
}


def normalize_choice(value: str, choices: tuple[str, ...], label: str) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f'Invalid {label}. Expected one of: {", ".join(choices)}.')
    return normalized


def normalize_text(value: str, label: str, max_length: int) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    if len(normalized) > max_length:
        raise ValueError(f'{label} must be {max_length} characters or fewer.')
    return normalized


class CreateQuestionRequest(CamelModel):
    title: str
    content: str
    category: str = 'general'
    priority: str = 'medium'

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return normalize_text(value, 'Title', MAX_TITLE_LENGTH)

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        return normalize_text(value, 'Content', MAX_CONTENT_LENGTH)

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str) -> str:
        return normalize_choice(value, CATEGORIES, 'category')

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, value: str) -> str:
        return normalize_choice(value, PRIORITIES, 'priority')


class UpdateQuestionRequest(CamelModel):
    title: str | None = None
    content: str | None = None
    category: str | None = None
    priority: str | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        return None if value is None else normalize_text(value, 'Title', MAX_TITLE_LENGTH)

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str | None) -> str | None:
        return None if value is None else normalize_text(value, 'Content', MAX_CONTENT_LENGTH)

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        return None if value is None else normalize_choice(value, CATEGORIES, 'category')

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, value: str | None) -> str | None:
        return None if value is None else normalize_choice(value, PRIORITIES, 'priority')


class ResolveQuestionRequest(CamelModel):
    is_resolved: bool = True


def get_visible_question(question_id: int, current_user: User, db: Session) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise errors.NotFoundError('Question not found.')
    if question.is_archived and question.author_id != current_user.id and not is_moderator(current_user):
        raise errors.NotFoundError('Question not found.')
    return question


def filter_questions(
    query,
    search: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    is_resolved: bool | None = None,
):
    if search and search.strip():
        pattern = f'%{search.strip()}%'
        query = query.filter(or_(Question.title.ilike(pattern), Question.content.ilike(pattern)))
    if category:
        query = query.filter(Question.category == category.strip().lower())
    if priority:
        query = query.filter(Question.priority == priority.strip().lower())
    if is_resolved is not None:
        query = query.filter(Question.is_resolved.is_(is_resolved))
    return query


def set_like(db: Session, record, user: User, liked: bool) -> None:
    if liked and user not in record.likes:
        record.likes.append(user)
    elif not liked and user in record.likes:
        record.likes.remove(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request already stored the same like.
        db.rollback()
    db.refresh(record)


@router.get('', response_model=QuestionListResponse)
def list_questions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    is_resolved: bool | None = Query(default=None, alias='isResolved'),
    sort: str = Query(default='newest'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if sort not in SORT_ORDERS:
        raise errors.ValidationError('Invalid sort order.')

    query = db.query(Question).filter(Question.is_archived.is_(False))
    query = filter_questions(query, search, category, priority, is_resolved)
    questions, pagination = paginate(query.order_by(*SORT_ORDERS[sort]), page, limit)
    return QuestionListResponse(
        questions=[serialize_question(question) for question in questions],
        pagination=pagination,
    )


@router.get('/user/{user_id}', response_model=QuestionListResponse)
def list_user_questions(
    user_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Question).filter(Question.author_id == user_id)
    if user_id != current_user.id and not is_moderator(current_user):
        query = query.filter(Question.is_archived.is_(False))
    questions, pagination = paginate(query.order_by(*SORT_ORDERS['newest']), page, limit)
    return QuestionListResponse(
        questions=[serialize_question(question) for question in questions],
        pagination=pagination,
    )


@router.get('/{question_id}', response_model=QuestionEnvelope)
def get_question(
    question_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    db.query(Question).filter(Question.id == question.id).update(
        {Question.views: Question.views + 1},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(question)
    return QuestionEnvelope(question=serialize_question(question))


@router.post('', response_model=QuestionEnvelope, status_code=status.HTTP_201_CREATED)
def create_question(
    data: CreateQuestionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = Question(
        title=data.title,
        content=data.content,
        category=data.category,
        priority=data.priority,
        author_id=current_user.id,
        is_resolved=False,
        is_archived=False,
        views=0,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return QuestionEnvelope(question=serialize_question(question))


@router.put('/{question_id}', response_model=QuestionEnvelope)
def update_question(
    question_id: int,
    data: UpdateQuestionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    ensure_owner_or_roles(
        question.author_id,
        current_user,
        MODERATOR_ROLES,
        'Only the author or a teacher can edit this question.',
    )

    for field, value in data.model_dump(exclude_none=True).items():
        setattr(question, field, value)
    db.commit()
    db.refresh(question)
    return QuestionEnvelope(question=serialize_question(question))


@router.delete('/{question_id}', response_model=MessageResponse)
def delete_question(
    question_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    ensure_owner_or_roles(
        question.author_id,
        current_user,
        ADMIN_ROLES,
        'Only the author or an admin can delete this question.',
    )

    if question.author_id != current_user.id:
        moderation.delete_question(db, question.id, actor=current_user)
    else:
        db.delete(question)
        db.commit()
    return MessageResponse(message='Question deleted successfully')


@router.post('/{question_id}/like', response_model=LikeResponse)
def like_question(
    question_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    set_like(db, question, current_user, liked=True)
    return LikeResponse(liked=True, likes=len(question.likes))


@router.delete('/{question_id}/like', response_model=LikeResponse)
def unlike_question(
    question_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    set_like(db, question, current_user, liked=False)
    return LikeResponse(liked=False, likes=len(question.likes))


@router.patch('/{question_id}/resolve', response_model=QuestionEnvelope)
def resolve_question(
    question_id: int,
    data: ResolveQuestionRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    ensure_owner_or_roles(
        question.author_id,
        current_user,
        MODERATOR_ROLES,
        'Only the author or a teacher can resolve this question.',
    )

    question.is_resolved = data.is_resolved if data is not None else True
    db.commit()
    db.refresh(question)
    return QuestionEnvelope(question=serialize_question(question))
