"""Moderation state transitions.

Callers are expected to hold the teacher or admin role; the routes enforce
that before any of these functions run. Each transition is committed
together with its ``ModerationLog`` entry and, when another user's content
or account is affected, a notification to that user.

Deleting a question removes its answers, their comments, and every like set
attached to them. Notifications already sent are kept. The public delete
routes hand over to this module when an admin removes someone else's content,
so the outcome does not depend on which route was used.
"""
import logging

from sqlalchemy.orm import Session

from backend.core import errors
from backend.models.answer import Answer
from backend.models.moderation_log import ModerationLog
from backend.models.question import Question
from backend.models.user import User, UserRole
from backend.services import notifications, user_directory

logger = logging.getLogger(__name__)


def record(
    db: Session,
    actor: User,
    action: str,
    target_type: str,
    target_id: int,
    details: str | None = None,
) -> ModerationLog:
    entry = ModerationLog(
        actor_id=actor.id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )
    db.add(entry)
    logger.info('%s %s %s %s by user %s', action, target_type, target_id, details or '', actor.id)
    return entry


def _notify(db: Session, actor: User, recipient_id: int, title: str, message: str) -> None:
    if recipient_id == actor.id:
        return
    notifications.create(db, recipient_id, title, message, kind='moderation', commit=False)


def get_question(db: Session, question_id: int) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise errors.NotFoundError('Question not found.')
    return question


def get_answer(db: Session, answer_id: int) -> Answer:
    answer = db.get(Answer, answer_id)
    if answer is None:
        raise errors.NotFoundError('Answer not found.')
    return answer


def archive_question(db: Session, question_id: int, actor: User) -> Question:
    question = get_question(db, question_id)
    if question.is_archived:
        return question

    question.is_archived = True
    record(db, actor, 'archive', 'question', question.id, question.title)
    _notify(
        db,
        actor,
        question.author_id,
        'Question archived',
        f'Your question "{question.title}" was archived by a moderator.',
    )
    db.commit()
    db.refresh(question)
    return question


def delete_question(db: Session, question_id: int, actor: User) -> None:
    question = get_question(db, question_id)
    author_id = question.author_id
    title = question.title

    db.delete(question)
    record(db, actor, 'delete', 'question', question_id, title)
    _notify(
        db,
        actor,
        author_id,
        'Question removed',
        f'Your question "{title}" was removed by a moderator.',
    )
    db.commit()


def remove_answer(db: Session, answer: Answer) -> None:
    """Delete ``answer``; a question left without its accepted answer is reopened."""
    if answer.is_accepted and answer.question is not None:
        answer.question.is_resolved = False
    db.delete(answer)


def delete_answer(db: Session, answer_id: int, actor: User) -> None:
    answer = get_answer(db, answer_id)
    author_id = answer.author_id
    question_title = answer.question.title if answer.question else ''

    remove_answer(db, answer)
    record(db, actor, 'delete', 'answer', answer_id, question_title)
    _notify(
        db,
        actor,
        author_id,
        'Answer removed',
        f'Your answer on "{question_title}" was removed by a moderator.',
    )
    db.commit()


def update_user_role(db: Session, user_id: int, new_role: str, actor: User) -> User:
    role = user_directory.validate_role(new_role)
    if user_id == actor.id:
        raise errors.ValidationError('You cannot change your own role.')

    target = user_directory.get_user(db, user_id)
    touches_admin = role == UserRole.ADMIN.value or target.role == UserRole.ADMIN.value
    if touches_admin and not actor.has_role(UserRole.ADMIN):
        raise errors.AuthorizationError('Only admins can grant or revoke the admin role.')

    previous_role = target.role
    if previous_role == role:
        return target

    user_directory.update_role(db, user_id, role, commit=False)
    record(db, actor, 'role_change', 'user', target.id, f'{previous_role} -> {role}')
    _notify(db, actor, target.id, 'Role updated', f'Your role was changed from {previous_role} to {role}.')
    db.commit()
    db.refresh(target)
    return target


def toggle_user_status(db: Session, user_id: int, actor: User) -> User:
    if user_id == actor.id:
        raise errors.ValidationError('You cannot change your own account status.')

    target = user_directory.get_user(db, user_id)
    if target.has_role(UserRole.ADMIN) and not actor.has_role(UserRole.ADMIN):
        raise errors.AuthorizationError('Only admins can change the status of an admin account.')

    user_directory.toggle_active(db, user_id, commit=False)
    state = 'activated' if target.is_active else 'deactivated'
    record(db, actor, 'status_change', 'user', target.id, state)
    _notify(db, actor, target.id, 'Account status updated', f'Your account was {state}.')
    db.commit()
    db.refresh(target)
    return target


def list_logs(db: Session):
    return db.query(ModerationLog).order_by(ModerationLog.created_at.desc(), ModerationLog.id.desc())
