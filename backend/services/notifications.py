"""Per-user notification ledger.

Notifications are written as side effects of moderation and content events
and are only ever read, marked read, or deleted by their recipient (or an
admin). ``create`` can join the caller's transaction by passing
``commit=False``, which is how moderation records the change and the
notification together.
"""
from sqlalchemy.orm import Session

from backend.core import errors
from backend.models.notification import Notification
from backend.models.user import User, UserRole


def create(
    db: Session,
    recipient_id: int,
    title: str,
    message: str,
    kind: str = 'info',
    commit: bool = True,
) -> Notification:
    notification = Notification(
        recipient_id=recipient_id,
        title=title,
        message=message,
        type=kind,
        is_read=False,
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    else:
        db.flush()
    return notification


def list_for_user(
    db: Session,
    user_id: int,
    unread_only: bool = False,
    limit: int | None = None,
) -> list[Notification]:
    query = db.query(Notification).filter(Notification.recipient_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read.is_(False),
    ).count()


def get_owned(db: Session, notification_id: int, caller: User) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise errors.NotFoundError('Notification not found.')
    if notification.recipient_id != caller.id and not caller.has_role(UserRole.ADMIN):
        raise errors.AuthorizationError('You can only manage your own notifications.')
    return notification


def mark_read(db: Session, notification_id: int, caller: User) -> Notification:
    notification = get_owned(db, notification_id, caller)
    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.is_read.is_(False),
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return updated


def delete(db: Session, notification_id: int, caller: User) -> None:
    notification = get_owned(db, notification_id, caller)
    db.delete(notification)
    db.commit()
