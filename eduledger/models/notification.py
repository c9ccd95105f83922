# eduledger/models/notification.py
from sqlalchemy import Column, String, Text, Boolean, Enum, JSON, Index
from .base import Base
import enum


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class NotificationType(str, enum.Enum):
    MESSAGE = "message"
    ASSIGNMENT = "assignment"
    ANNOUNCEMENT = "announcement"
    QUIZ = "quiz"
    MATERIAL = "material"
    EVENT = "event"
    ATTENDANCE = "attendance"
    GRADE = "grade"


class RecipientType(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class SenderType(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"

    recipient_id = Column(String(64), nullable=False, index=True)
    recipient_type = Column(
        Enum(RecipientType, name="recipient_type", values_callable=_enum_values),
        nullable=False,
    )
    sender_id = Column(String(64), nullable=False)
    sender_type = Column(
        Enum(SenderType, name="sender_type", values_callable=_enum_values),
        nullable=False,
    )
    sender_name = Column(String(100), nullable=False)

    type = Column(
        Enum(NotificationType, name="notification_type", values_callable=_enum_values),
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    related_id = Column(String(64))
    related_type = Column(String(50))

    # Only these two flags change after creation
    is_read = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)

    extra_metadata = Column("metadata", JSON, default=dict)

    __table_args__ = (
        Index("ix_notification_recipient_read", "recipient_id", "is_read", "created_at"),
        Index("ix_notification_recipient_deleted", "recipient_id", "is_deleted"),
    )
