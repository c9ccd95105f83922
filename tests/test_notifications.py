# tests/test_notifications.py

import uuid

import pytest

from eduledger.core.errors import ClassNotFound, NotFoundError
from eduledger.models import NotificationType, RecipientType, SenderType
from eduledger.schemas.notification import NotificationEvent
from eduledger.services.notification_service import NotificationService, render_message
from eduledger.utils.pagination import PageRequest


def announcement(recipients=(), **overrides):
    data = {
        "sender_id": "t-100",
        "sender_type": SenderType.TEACHER,
        "sender_name": "Ms. Rivera",
        "type": NotificationType.ANNOUNCEMENT,
        "title": "Field Trip",
        "message_template": "{sender_name} posted {title} for {class_name}",
        "recipients": list(recipients),
        "related_id": "ann-1",
        "metadata": {"class_name": "Grade 10-A"},
    }
    data.update(overrides)
    return NotificationEvent(**data)


def test_render_message_leaves_unknown_placeholders():
    assert render_message("Hi {name}, see {missing}", {"name": "Sam"}) == "Hi Sam, see {missing}"
    assert render_message("Broken {", {"name": "Sam"}) == "Broken {"


async def test_notify_creates_one_row_per_recipient(session):
    service = NotificationService(session)

    notifications = await service.notify(announcement(["s-1", "s-2", "s-3", "s-2"]))

    assert sorted(n.recipient_id for n in notifications) == ["s-1", "s-2", "s-3"]
    assert {n.related_id for n in notifications} == {"ann-1"}
    assert {n.related_type for n in notifications} == {"announcement"}
    assert notifications[0].message == "Ms. Rivera posted Field Trip for Grade 10-A"


async def test_notify_class_fans_out_to_roster(session, roster):
    notifications = await NotificationService(session).notify_class(roster.class_id, announcement())

    assert sorted(n.recipient_id for n in notifications) == sorted(str(s) for s in roster.student_ids)
    assert all(n.recipient_type == RecipientType.STUDENT for n in notifications)


async def test_notify_class_unknown_class(session):
    with pytest.raises(ClassNotFound):
        await NotificationService(session).notify_class(uuid.uuid4(), announcement())


async def test_recipients_flag_independently(session):
    service = NotificationService(session)
    first, second = await service.notify(announcement(["s-1", "s-2"]))

    await service.mark_read(first.id, "s-1", RecipientType.STUDENT)
    await service.delete(first.id, "s-1", RecipientType.STUDENT)

    assert await service.unread_count("s-1", RecipientType.STUDENT) == 0
    assert await service.unread_count("s-2", RecipientType.STUDENT) == 1
    page = await service.list_for_recipient("s-2", RecipientType.STUDENT)
    assert [n.id for n in page["notifications"]] == [second.id]


async def test_mark_read_checks_ownership(session):
    service = NotificationService(session)
    (notification,) = await service.notify(announcement(["s-1"]))

    with pytest.raises(NotFoundError):
        await service.mark_read(notification.id, "s-2", RecipientType.STUDENT)
    with pytest.raises(NotFoundError):
        await service.mark_read(notification.id, "s-1", RecipientType.TEACHER)


async def test_mark_read_after_delete(session):
    service = NotificationService(session)
    (notification,) = await service.notify(announcement(["s-1"]))
    await service.delete(notification.id, "s-1", RecipientType.STUDENT)

    with pytest.raises(NotFoundError):
        await service.mark_read(notification.id, "s-1", RecipientType.STUDENT)


async def test_mark_all_read_and_delete_all(session):
    service = NotificationService(session)
    await service.notify(announcement(["s-1"]))
    await service.notify(announcement(["s-1", "s-2"], title="Exam Schedule"))

    assert await service.mark_all_read("s-1", RecipientType.STUDENT) == 2
    assert await service.unread_count("s-2", RecipientType.STUDENT) == 1

    assert await service.delete_all("s-1", RecipientType.STUDENT) == 2
    page = await service.list_for_recipient("s-1", RecipientType.STUDENT)
    assert page["total"] == 0


async def test_list_for_recipient_paginates(session):
    service = NotificationService(session)
    for i in range(5):
        await service.notify(announcement(["s-1"], title=f"Notice {i}"))

    page = await service.list_for_recipient(
        "s-1", RecipientType.STUDENT, paging=PageRequest(page=2, size=2), unread_only=True
    )

    assert len(page["notifications"]) == 2
    assert page["total"] == 5
    assert page["unread_count"] == 5
    assert page["total_pages"] == 3
    assert page["has_next"] and page["has_previous"]


async def test_class_item_builder(session, roster):
    notifications = await NotificationService(session).notify_class_item(
        NotificationType.MATERIAL, "t-100", "Ms. Rivera", roster.class_id, "Algebra Notes", related_id="mat-7"
    )

    assert len(notifications) == 3
    assert notifications[0].title == "New Study Material"
    assert notifications[0].message == (
        'New study material "Algebra Notes" has been uploaded by Ms. Rivera for Grade 10-A - Mathematics'
    )


async def test_message_and_response_builders(session):
    service = NotificationService(session)

    (message,) = await service.notify_message(
        "t-100", SenderType.TEACHER, "Ms. Rivera", "s-1", RecipientType.STUDENT, "x" * 120
    )
    assert message.message == "You have a new message from Ms. Rivera"
    assert message.extra_metadata["message_preview"] == "x" * 100 + "..."

    (response,) = await service.notify_student_response(
        "s-1", "Student 1", "t-100", "quiz", "Grade 10-A", "Mathematics"
    )
    assert response.recipient_type == RecipientType.TEACHER
    assert response.message == "Student 1 has responded to your quiz for Grade 10-A - Mathematics"
