from fastapi import APIRouter, Depends, Query, status
from pydantic import field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, require_moderator
from backend.auth.permissions import ADMIN_ROLES, MODERATOR_ROLES, ensure_owner_or_roles, is_moderator
from backend.core import errors
from backend.database import get_db
from backend.models.answer import Answer, Comment
from backend.models.question import Question
from backend.models.user import User
from backend.routes.question_routes import MAX_CONTENT_LENGTH, get_visible_question, normalize_text, set_like
from backend.schemas.answer import (
    AnswerEnvelope,
    AnswerListResponse,
    AnswerSummary,
    CommentEnvelope,
    serialize_answer,
    serialize_comment,
)
from backend.schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, CamelModel, MessageResponse, paginate
from backend.schemas.question import LikeResponse
from backend.services import moderation, notifications

router = APIRouter(tags=['answers'])

MAX_COMMENT_LENGTH = 1000


class CreateAnswerRequest(CamelModel):
    question: int
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        return normalize_text(value, 'Content', MAX_CONTENT_LENGTH)


class UpdateAnswerRequest(CamelModel):
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        return normalize_text(value, 'Content', MAX_CONTENT_LENGTH)


class CreateCommentRequest(CamelModel):
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        return normalize_text(value, 'Comment', MAX_COMMENT_LENGTH)


def get_answer_or_404(answer_id: int, current_user: User, db: Session) -> Answer:
    answer = db.get(Answer, answer_id)
    if answer is None:
        raise errors.NotFoundError('Answer not found.')
    # Answers under a hidden question are hidden with it.
    get_visible_question(answer.question_id, current_user, db)
    return answer


def get_comment_or_404(answer: Answer, comment_id: int, db: Session) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None or comment.answer_id != answer.id:
        raise errors.NotFoundError('Comment not found.')
    return comment


def notify_unless_self(db: Session, actor: User, recipient_id: int, title: str, message: str, kind: str) -> None:
    if recipient_id != actor.id:
        notifications.create(db, recipient_id, title, message, kind=kind, commit=False)


@router.get('/question/{question_id}', response_model=AnswerListResponse)
def list_question_answers(
    question_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(question_id, current_user, db)
    answers = db.query(Answer).filter(Answer.question_id == question.id).order_by(
        Answer.is_accepted.desc(),
        Answer.is_verified.desc(),
        Answer.created_at.asc(),
        Answer.id.asc(),
    ).all()
    return AnswerListResponse(answers=[serialize_answer(answer) for answer in answers])


@router.get('/user/{user_id}', response_model=AnswerListResponse)
def list_user_answers(
    user_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Answer).filter(Answer.author_id == user_id)
    if user_id != current_user.id and not is_moderator(current_user):
        query = query.join(Question, Answer.question_id == Question.id).filter(
            or_(Question.is_archived.is_(False), Question.author_id == current_user.id)
        )
    answers, pagination = paginate(query.order_by(Answer.created_at.desc(), Answer.id.desc()), page, limit)

    all_answers = query.all()
    summary = AnswerSummary(
        total_likes=sum(len(answer.likes) for answer in all_answers),
        accepted=sum(1 for answer in all_answers if answer.is_accepted),
    )
    return AnswerListResponse(
        answers=[serialize_answer(answer) for answer in answers],
        pagination=pagination,
        summary=summary,
    )


@router.post('', response_model=AnswerEnvelope, status_code=status.HTTP_201_CREATED)
def create_answer(
    data: CreateAnswerRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    question = get_visible_question(data.question, current_user, db)
    if question.is_archived:
        raise errors.ValidationError('Archived questions cannot receive new answers.')

    answer = Answer(
        content=data.content,
        question_id=question.id,
        author_id=current_user.id,
        is_accepted=False,
        is_verified=False,
    )
    db.add(answer)
    notify_unless_self(
        db,
        current_user,
        question.author_id,
        'New answer',
        f'{current_user.name} answered your question "{question.title}".',
        kind='answer',
    )
    db.commit()
    db.refresh(answer)
    return AnswerEnvelope(answer=serialize_answer(answer))


@router.put('/{answer_id}', response_model=AnswerEnvelope)
def update_answer(
    answer_id: int,
    data: UpdateAnswerRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    ensure_owner_or_roles(
        answer.author_id,
        current_user,
        MODERATOR_ROLES,
        'Only the author or a teacher can edit this answer.',
    )
    answer.content = data.content
    db.commit()
    db.refresh(answer)
    return AnswerEnvelope(answer=serialize_answer(answer))


@router.delete('/{answer_id}', response_model=MessageResponse)
def delete_answer(
    answer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    ensure_owner_or_roles(
        answer.author_id,
        current_user,
        ADMIN_ROLES,
        'Only the author or an admin can delete this answer.',
    )
    if answer.author_id != current_user.id:
        moderation.delete_answer(db, answer.id, actor=current_user)
    else:
        moderation.remove_answer(db, answer)
        db.commit()
    return MessageResponse(message='Answer deleted successfully')


@router.post('/{answer_id}/like', response_model=LikeResponse)
def like_answer(
    answer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    set_like(db, answer, current_user, liked=True)
    return LikeResponse(liked=True, likes=len(answer.likes))


@router.delete('/{answer_id}/like', response_model=LikeResponse)
def unlike_answer(
    answer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    set_like(db, answer, current_user, liked=False)
    return LikeResponse(liked=False, likes=len(answer.likes))


@router.patch('/{answer_id}/accept', response_model=AnswerEnvelope)
def accept_answer(
    answer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    question: Question = answer.question
    ensure_owner_or_roles(
        question.author_id,
        current_user,
        MODERATOR_ROLES,
        'Only the question author or a teacher can accept an answer.',
    )

    if not answer.is_accepted:
        db.query(Answer).filter(
            Answer.question_id == question.id,
            Answer.id != answer.id,
        ).update({Answer.is_accepted: False}, synchronize_session=False)
        answer.is_accepted = True
        question.is_resolved = True
        notify_unless_self(
            db,
            current_user,
            answer.author_id,
            'Answer accepted',
            f'Your answer on "{question.title}" was accepted.',
            kind='answer',
        )
        db.commit()
    db.refresh(answer)
    return AnswerEnvelope(answer=serialize_answer(answer))


@router.patch('/{answer_id}/verify', response_model=AnswerEnvelope)
def verify_answer(
    answer_id: int,
    current_user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    answer.is_verified = not answer.is_verified
    if answer.is_verified:
        notify_unless_self(
            db,
            current_user,
            answer.author_id,
            'Answer verified',
            f'Your answer on "{answer.question.title}" was verified by {current_user.name}.',
            kind='answer',
        )
    db.commit()
    db.refresh(answer)
    return AnswerEnvelope(answer=serialize_answer(answer))


@router.post('/{answer_id}/comments', response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
def add_comment(
    answer_id: int,
    data: CreateCommentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    if answer.question.is_archived:
        raise errors.ValidationError('Archived questions cannot receive new comments.')
    comment = Comment(answer_id=answer.id, author_id=current_user.id, content=data.content)
    db.add(comment)
    notify_unless_self(
        db,
        current_user,
        answer.author_id,
        'New comment',
        f'{current_user.name} commented on your answer.',
        kind='comment',
    )
    db.commit()
    db.refresh(comment)
    return CommentEnvelope(comment=serialize_comment(comment))


@router.delete('/{answer_id}/comments/{comment_id}', response_model=MessageResponse)
def delete_comment(
    answer_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    comment = get_comment_or_404(answer, comment_id, db)
    ensure_owner_or_roles(
        comment.author_id,
        current_user,
        ADMIN_ROLES,
        'Only the author or an admin can delete this comment.',
    )
    db.delete(comment)
    db.commit()
    return MessageResponse(message='Comment deleted successfully')


@router.post('/{answer_id}/comments/{comment_id}/like', response_model=LikeResponse)
def like_comment(
    answer_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    comment = get_comment_or_404(answer, comment_id, db)
    set_like(db, comment, current_user, liked=True)
    return LikeResponse(liked=True, likes=len(comment.likes))


@router.delete('/{answer_id}/comments/{comment_id}/like', response_model=LikeResponse)
def unlike_comment(
    answer_id: int,
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = get_answer_or_404(answer_id, current_user, db)
    comment = get_comment_or_404(answer, comment_id, db)
    set_like(db, comment, current_user, liked=False)
    return LikeResponse(liked=False, likes=len(comment.likes))
