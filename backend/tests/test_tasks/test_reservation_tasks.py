"""Tests for the periodic reservation tasks with the task session patched."""

from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import patch

from sqlalchemy import select

from conftest import RecordingNotificationSender, reservation_request, slot
from venuebook.database import utcnow
from venuebook.models.reservation import Reservation
from venuebook.tasks import reservation_tasks


def _patched(db_session, sender):
    @asynccontextmanager
    async def session():
        yield db_session

    return (
        patch.object(reservation_tasks, "task_session", session),
        patch.object(reservation_tasks, "QueueNotificationSender", return_value=sender),
    )


async def test_sweep_on_empty_database(db_session):
    session_patch, sender_patch = _patched(db_session, RecordingNotificationSender())
    with session_patch, sender_patch:
        report = await reservation_tasks._run_sweep()

    assert report == {"expired": 0, "reminded": 0, "purged": 0}


async def test_sweep_expires_overdue(db_session, reservation_service, customer, hall, clock):
    created = await reservation_service.create(customer, reservation_request(hall, [slot(clock)]))
    reservation = created.reservation
    reservation.cutoff_date = utcnow() - timedelta(minutes=5)
    await db_session.commit()
    sender = RecordingNotificationSender()

    session_patch, sender_patch = _patched(db_session, sender)
    with session_patch, sender_patch:
        report = await reservation_tasks._run_sweep()

    assert report["expired"] == 1
    assert reservation.status == "EXPIRED"
    assert sender.of("reservation.expired")


async def test_purge_uses_stored_hold(db_session, reservation_service, customer, hall, clock):
    created = await reservation_service.create(customer, reservation_request(hall, [slot(clock)]))
    created.reservation.created_at = utcnow() - timedelta(hours=1)
    await db_session.commit()

    session_patch, sender_patch = _patched(db_session, RecordingNotificationSender())
    with session_patch, sender_patch:
        purged = await reservation_tasks._purge()

    assert purged == 1
    remaining = await db_session.execute(select(Reservation))
    assert remaining.scalars().all() == []
