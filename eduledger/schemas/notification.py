# eduledger/schemas/notification.py
"""Pydantic schemas for notifications and fan-out events."""
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import Field, model_validator

from .common import RequestSchema, ResponseSchema
from ..models.notification import NotificationType, RecipientType, SenderType


class NotificationEvent(RequestSchema):
    """One logical event to be replicated into a notification row per recipient"""
    sender_id: str = Field(..., min_length=1, max_length=64)
    sender_type: SenderType
    sender_name: str = Field(..., min_length=1, max_length=100)
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=200)
    message_template: str = Field(..., min_length=1)
    recipients: List[str] = []
    recipient_type: RecipientType = RecipientType.STUDENT
    related_id: Optional[str] = Field(default=None, max_length=64)
    related_type: Optional[str] = Field(default=None, max_length=50)
    metadata: Dict[str, Any] = {}


class NotifyRequest(NotificationEvent):
    """Fan-out request: an explicit recipient list or a class whose roster is resolved"""
    class_id: Optional[UUID] = None

    @model_validator(mode='after')
    def validate_audience(self):
        if not self.recipients and self.class_id is None:
            raise ValueError('either recipients or classId is required')
        if self.recipients and self.class_id is not None:
            raise ValueError('recipients and classId are mutually exclusive')
        return self


class RecipientRef(RequestSchema):
    recipient_id: str = Field(..., min_length=1, max_length=64)
    recipient_type: RecipientType


class NotificationOut(ResponseSchema):
    id: UUID
    recipient_id: str
    recipient_type: RecipientType
    sender_id: str
    sender_type: SenderType
    sender_name: str
    type: NotificationType
    title: str
    message: str
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    is_read: bool
    is_deleted: bool
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra_metadata")
    created_at: Optional[datetime] = None


class NotificationPage(ResponseSchema):
    notifications: List[NotificationOut]
    total: int
    unread_count: int
    page: int
    size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class FanOutResult(ResponseSchema):
    created: int
    notification_ids: List[UUID]


class UnreadCount(ResponseSchema):
    unread_count: int


class FlagUpdateResult(ResponseSchema):
    message: str
    updated_count: int
