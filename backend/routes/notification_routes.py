from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.user import User
from backend.schemas.common import MessageResponse
from backend.schemas.notification import (
    MarkAllReadResponse,
    NotificationEnvelope,
    NotificationListResponse,
    NotificationResponse,
)
from backend.services import notifications

router = APIRouter(tags=['notifications'])


@router.get('', response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(default=False, alias='unreadOnly'),
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items = notifications.list_for_user(db, current_user.id, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(item) for item in items],
        unread_count=notifications.unread_count(db, current_user.id),
    )


@router.put('/read-all', response_model=MarkAllReadResponse)
def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = notifications.mark_all_read(db, current_user.id)
    return MarkAllReadResponse(message='All notifications marked as read', updated=updated)


@router.put('/{notification_id}/read', response_model=NotificationEnvelope)
def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = notifications.mark_read(db, notification_id, current_user)
    return NotificationEnvelope(notification=NotificationResponse.model_validate(notification))


@router.delete('/{notification_id}', response_model=MessageResponse)
def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notifications.delete(db, notification_id, current_user)
    return MessageResponse(message='Notification deleted')
