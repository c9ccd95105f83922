# eduledger/services/notification_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from .base_service import BaseService
from .roster_service import RosterService
from ..core.errors import NotFoundError
from ..models.notification import Notification, NotificationType, RecipientType, SenderType
from ..schemas.notification import NotificationEvent
from ..utils.pagination import PageRequest, Paginator

logger = logging.getLogger(__name__)


class _TemplateContext(dict):
    """Leaves unknown placeholders in place instead of failing the whole fan-out"""
    def __missing__(self, key):
        return "{" + key + "}"


def render_message(template: str, context: Dict[str, Any]) -> str:
    try:
        return template.format_map(_TemplateContext(context))
    except (ValueError, IndexError, AttributeError):
        # Malformed braces: deliver the template verbatim
        return template


class NotificationService(BaseService[Notification]):
    """Replicates one logical event into one notification row per recipient."""
    resource_name = "Notification"

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def notify(self, event: NotificationEvent) -> List[Notification]:
        """Create exactly one notification per distinct recipient, sharing relatedId/type"""
        recipients = list(dict.fromkeys(str(recipient) for recipient in event.recipients))
        if not recipients:
            return []

        message = render_message(
            event.message_template,
            {"sender_name": event.sender_name, "title": event.title, **event.metadata},
        )
        notifications = [
            Notification(
                recipient_id=recipient_id,
                recipient_type=event.recipient_type,
                sender_id=event.sender_id,
                sender_type=event.sender_type,
                sender_name=event.sender_name,
                type=event.type,
                title=event.title,
                message=message,
                related_id=event.related_id,
                related_type=event.related_type or event.type.value,
                extra_metadata=dict(event.metadata),
            )
            for recipient_id in recipients
        ]
        self.db.add_all(notifications)
        await self.db.commit()

        logger.info(
            f"Fanned out {event.type.value} notification '{event.title}' to {len(notifications)} recipients"
        )
        return notifications

    async def notify_class(self, class_id: UUID, event: NotificationEvent) -> List[Notification]:
        """Fan an event out to everyone currently on the class roster"""
        student_ids = await RosterService(self.db).resolve(class_id)
        audience = event.model_copy(update={
            "recipients": [str(student_id) for student_id in student_ids],
            "recipient_type": RecipientType.STUDENT,
        })
        return await self.notify(audience)

    # Builders for the events the surrounding application emits

    async def notify_message(
        self,
        sender_id: str,
        sender_type: SenderType,
        sender_name: str,
        recipient_id: str,
        recipient_type: RecipientType,
        message_content: str,
        related_id: Optional[str] = None,
    ) -> List[Notification]:
        preview = message_content[:100] + ("..." if len(message_content) > 100 else "")
        return await self.notify(NotificationEvent(
            sender_id=sender_id,
            sender_type=sender_type,
            sender_name=sender_name,
            type=NotificationType.MESSAGE,
            title="New Message",
            message_template="You have a new message from {sender_name}",
            recipients=[recipient_id],
            recipient_type=recipient_type,
            related_id=related_id,
            related_type="message",
            metadata={"message_preview": preview},
        ))

    async def notify_class_item(
        self,
        item_type: NotificationType,
        teacher_id: str,
        teacher_name: str,
        class_id: UUID,
        item_title: str,
        related_id: Optional[str] = None,
    ) -> List[Notification]:
        """Assignment, announcement, quiz, material and event creation all fan out to the roster"""
        title, verb = CLASS_ITEM_TEMPLATES[item_type]
        teacher_class = await RosterService(self.db).get_class(class_id)
        event = NotificationEvent(
            sender_id=teacher_id,
            sender_type=SenderType.TEACHER,
            sender_name=teacher_name,
            type=item_type,
            title=title,
            message_template=(
                'New {item_label} "{item_title}" ' + verb + " by {sender_name} for {class_name} - {subject_name}"
            ),
            related_id=related_id,
            related_type=item_type.value,
            metadata={
                "item_label": ITEM_LABELS[item_type],
                "item_title": item_title,
                "class_name": teacher_class.class_name,
                "subject_name": teacher_class.subject_name,
            },
        )
        return await self.notify_class(class_id, event)

    async def notify_student_response(
        self,
        student_id: str,
        student_name: str,
        teacher_id: str,
        response_type: str,
        class_name: str,
        subject_name: str,
    ) -> List[Notification]:
        return await self.notify(NotificationEvent(
            sender_id=student_id,
            sender_type=SenderType.STUDENT,
            sender_name=student_name,
            type=NotificationType.MESSAGE,
            title="Student Response",
            message_template="{sender_name} has responded to your {response_type} for {class_name} - {subject_name}",
            recipients=[teacher_id],
            recipient_type=RecipientType.TEACHER,
            related_type="response",
            metadata={
                "response_type": response_type,
                "class_name": class_name,
                "subject_name": subject_name,
            },
        ))

    # Recipient-side reads and flags

    def _recipient_filter(self, recipient_id: str, recipient_type: RecipientType):
        return (
            self.model.recipient_id == recipient_id,
            self.model.recipient_type == recipient_type,
            self.model.is_deleted == False,
        )

    async def unread_count(self, recipient_id: str, recipient_type: RecipientType) -> int:
        stmt = select(func.count()).select_from(self.model).where(
            *self._recipient_filter(recipient_id, recipient_type),
            self.model.is_read == False,
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def list_for_recipient(
        self,
        recipient_id: str,
        recipient_type: RecipientType,
        paging: Optional[PageRequest] = None,
        unread_only: bool = False,
    ) -> Dict[str, Any]:
        paging = paging or PageRequest()
        conditions = list(self._recipient_filter(recipient_id, recipient_type))
        if unread_only:
            conditions.append(self.model.is_read == False)

        total = (await self.db.execute(
            select(func.count()).select_from(self.model).where(*conditions)
        )).scalar_one()

        stmt = (
            select(self.model)
            .where(*conditions)
            .order_by(self.model.created_at.desc(), self.model.id)
            .offset(paging.offset)
            .limit(paging.size)
        )
        result = await self.db.execute(stmt)

        return {
            "notifications": list(result.scalars().all()),
            "total": total,
            "unread_count": await self.unread_count(recipient_id, recipient_type),
            **Paginator.page_fields(paging, total),
        }

    async def _get_for_recipient(
        self, notification_id: UUID, recipient_id: str, recipient_type: RecipientType
    ) -> Notification:
        stmt = select(self.model).where(
            self.model.id == notification_id,
            *self._recipient_filter(recipient_id, recipient_type),
        )
        notification = (await self.db.execute(stmt)).scalar_one_or_none()
        if notification is None:
            raise NotFoundError(self.resource_name, notification_id)
        return notification

    async def mark_read(
        self, notification_id: UUID, recipient_id: str, recipient_type: RecipientType
    ) -> Notification:
        notification = await self._get_for_recipient(notification_id, recipient_id, recipient_type)
        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, recipient_id: str, recipient_type: RecipientType) -> int:
        stmt = (
            update(self.model)
            .where(*self._recipient_filter(recipient_id, recipient_type), self.model.is_read == False)
            .values(is_read=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount

    async def delete(self, notification_id: UUID, recipient_id: str, recipient_type: RecipientType) -> None:
        """Soft delete; the underlying event is never re-fanned-out"""
        notification = await self._get_for_recipient(notification_id, recipient_id, recipient_type)
        notification.is_deleted = True
        await self.db.commit()

    async def delete_all(self, recipient_id: str, recipient_type: RecipientType) -> int:
        stmt = (
            update(self.model)
            .where(*self._recipient_filter(recipient_id, recipient_type))
            .values(is_deleted=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount


ITEM_LABELS = {
    NotificationType.ASSIGNMENT: "assignment",
    NotificationType.ANNOUNCEMENT: "announcement",
    NotificationType.QUIZ: "quiz",
    NotificationType.MATERIAL: "study material",
    NotificationType.EVENT: "event",
}

CLASS_ITEM_TEMPLATES = {
    NotificationType.ASSIGNMENT: ("New Assignment", "has been posted"),
    NotificationType.ANNOUNCEMENT: ("New Announcement", "has been posted"),
    NotificationType.QUIZ: ("New Quiz", "has been created"),
    NotificationType.MATERIAL: ("New Study Material", "has been uploaded"),
    NotificationType.EVENT: ("New Event", "has been scheduled"),
}
