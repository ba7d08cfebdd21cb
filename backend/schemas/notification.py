from datetime import datetime

from backend.schemas.common import CamelModel


class NotificationResponse(CamelModel):
    id: int
    recipient_id: int
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime


class NotificationEnvelope(CamelModel):
    notification: NotificationResponse


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(CamelModel):
    message: str
    updated: int
