"""Tests for notification audiences, the outbox and the delivery task."""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import select

from conftest import ExplodingNotificationSender, RecordingNotificationSender
from venuebook.models.notification import Notification
from venuebook.notifications.events import Outbox
from venuebook.notifications.recipients import (
    RegisteredCustomer,
    WalkInCustomer,
    hall_audience,
    notices_for,
)
from venuebook.notifications.sender import QueueNotificationSender
from venuebook.tasks.notification_tasks import store_notification

pytestmark = pytest.mark.asyncio


class TestAudience:
    async def test_owner_and_admins(self, db_session, hall, owner, admin, staff_member):
        recipients = await hall_audience(db_session, hall)
        assert [r.user_id for r in recipients] == [owner.id, admin.id]

    async def test_customer_who_is_also_admin_gets_one_message(self, db_session, hall, admin):
        customer = RegisteredCustomer(user_id=admin.id, full_name=admin.full_name, email=admin.email)
        notices = await notices_for(db_session, hall, customer, customer_message="c", staff_message="s")
        assert [(r.user_id, message) for r, message, _ in notices if r.user_id == admin.id] == [(admin.id, "c")]

    async def test_no_hall_goes_to_admins(self, db_session, hall, admin):
        notices = await notices_for(db_session, None, None, customer_message=None, staff_message="orphan")
        assert [(r.user_id, message) for r, message, _ in notices] == [(admin.id, "orphan")]


class TestOutbox:
    async def test_dispatch_skips_unreachable_walk_ins(self, db_session, hall):
        walk_in = WalkInCustomer(full_name="No Contact", phone="+2348066666666")
        outbox = Outbox()
        outbox.emit(
            "reservation.confirmed",
            uuid.uuid4(),
            await notices_for(db_session, hall, walk_in, customer_message="hi", staff_message="staff"),
        )
        sender = RecordingNotificationSender()

        delivered = await outbox.dispatch(sender)

        assert delivered == 2
        assert outbox.events == []
        assert all(notice.message == "staff" for notice in sender.sent)

    async def test_dispatch_swallows_sender_errors(self, db_session, hall):
        outbox = Outbox()
        outbox.emit(
            "booking.confirmed",
            uuid.uuid4(),
            await notices_for(db_session, hall, None, customer_message=None, staff_message="staff"),
        )
        sender = ExplodingNotificationSender()

        assert await outbox.dispatch(sender) == 0
        assert sender.attempts == 2

    async def test_names(self):
        outbox = Outbox()
        outbox.emit("booking.cancelled", uuid.uuid4(), [])
        assert outbox.names == ["booking.cancelled"]


class TestQueueSender:
    async def test_enqueues_delivery_task(self):
        recipient_id = uuid.uuid4()
        with patch("venuebook.tasks.notification_tasks.deliver_notification.delay") as delay:
            await QueueNotificationSender().send(recipient_id, "hello", "/x", email="a@b.co", event="booking.confirmed")
        delay.assert_called_once_with(str(recipient_id), "hello", "/x", "a@b.co", "booking.confirmed")

    async def test_enqueue_failure_is_logged_not_raised(self):
        with patch(
            "venuebook.tasks.notification_tasks.deliver_notification.delay",
            side_effect=ConnectionError("broker down"),
        ):
            await QueueNotificationSender().send(None, "hello", email="walkin@example.com")


class TestStoreNotification:
    async def test_registered_user_gets_in_app_row(self, db_session, customer):
        notification = await store_notification(
            db_session, str(customer.id), "Your booking is confirmed.", "/bookings/1", None, "booking.confirmed"
        )
        await db_session.commit()

        rows = (await db_session.execute(select(Notification))).scalars().all()
        assert [row.id for row in rows] == [notification.id]
        assert rows[0].recipient_id == customer.id
        assert rows[0].event == "booking.confirmed"
        assert rows[0].is_read is False

    async def test_walk_in_email_only(self, db_session):
        notification = await store_notification(
            db_session, None, "Your booking is confirmed.", None, "walkin@example.com", "booking.confirmed"
        )
        assert notification is None

    async def test_unknown_user_dropped(self, db_session):
        assert await store_notification(db_session, str(uuid.uuid4()), "m", None, None, "e") is None
