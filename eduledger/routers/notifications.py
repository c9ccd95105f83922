# eduledger/routers/notifications.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.actor import ActorContext, ActorType, get_actor
from ..core.database import get_db
from ..core.errors import ValidationError
from ..models.notification import RecipientType
from ..services.notification_service import NotificationService
from ..utils.pagination import PageRequest, Paginator
from ..schemas.common import MessageResponse
from ..schemas.notification import (
    NotifyRequest, NotificationOut, NotificationPage, FanOutResult, UnreadCount,
    FlagUpdateResult, RecipientRef,
)

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


async def get_recipient(actor: ActorContext = Depends(get_actor)) -> RecipientRef:
    """The acting user reads their own notifications"""
    if actor.actor_type == ActorType.SYSTEM:
        raise ValidationError("System actors do not receive notifications", field="X-Actor-Type")
    return RecipientRef(recipient_id=actor.actor_id, recipient_type=RecipientType(actor.actor_type.value))


@router.get("", response_model=NotificationPage)
async def get_notifications(
    paging: PageRequest = Depends(Paginator.page_request),
    unread_only: bool = Query(False, alias="unreadOnly"),
    recipient: RecipientRef = Depends(get_recipient),
    db: AsyncSession = Depends(get_db),
):
    service = NotificationService(db)
    return await service.list_for_recipient(
        recipient.recipient_id, recipient.recipient_type, paging=paging, unread_only=unread_only
    )


@router.get("/count", response_model=UnreadCount)
async def get_unread_count(
    recipient: RecipientRef = Depends(get_recipient),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).unread_count(recipient.recipient_id, recipient.recipient_type)
    return {"unread_count": count}


@router.post("/notify", response_model=FanOutResult, status_code=201)
async def notify(
    payload: NotifyRequest,
    actor: ActorContext = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Fan an event out to explicit recipients or to a class roster"""
    service = NotificationService(db)
    if payload.class_id is not None:
        notifications = await service.notify_class(payload.class_id, payload)
    else:
        notifications = await service.notify(payload)
    return {
        "created": len(notifications),
        "notification_ids": [notification.id for notification in notifications],
    }


@router.patch("/read-all", response_model=FlagUpdateResult)
async def mark_all_read(
    recipient: RecipientRef = Depends(get_recipient),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService(db).mark_all_read(recipient.recipient_id, recipient.recipient_type)
    return {"message": "All notifications marked as read", "updated_count": updated}


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: UUID,
    recipient: RecipientRef = Depends(get_recipient),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).mark_read(
        notification_id, recipient.recipient_id, recipient.recipient_type
    )


@router.delete("", response_model=FlagUpdateResult)
async def delete_all_notifications(
    recipient: RecipientRef = Depends(get_recipient),
    db: AsyncSession = Depends(get_db),
):
    deleted = await NotificationService(db).delete_all(recipient.recipient_id, recipient.recipient_type)
    return {"message": "All notifications deleted", "updated_count": deleted}


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    recipient: RecipientRef = Depends(get_recipient),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).delete(notification_id, recipient.recipient_id, recipient.recipient_type)
    return {"message": "Notification deleted successfully"}
