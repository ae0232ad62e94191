"""Periodic reservation maintenance tasks (scheduled by Celery Beat)."""

import asyncio
import logging
from dataclasses import asdict

from venuebook.notifications.sender import QueueNotificationSender
from venuebook.services.platform_settings import DatabaseSettingsProvider
from venuebook.services.reservation_sweep import ReservationSweep
from venuebook.tasks.celery_app import celery_app
from venuebook.tasks.session import task_session

logger = logging.getLogger(__name__)


async def _run_sweep() -> dict[str, int]:
    async with task_session() as db:
        sweep = ReservationSweep(
            db,
            sender=QueueNotificationSender(),
            settings_provider=DatabaseSettingsProvider(db),
        )
        report = await sweep.run()
    return asdict(report)


async def _purge() -> int:
    async with task_session() as db:
        sweep = ReservationSweep(
            db,
            sender=QueueNotificationSender(),
            settings_provider=DatabaseSettingsProvider(db),
        )
        return await sweep.purge_stale_pending_deposits()


@celery_app.task(name="venuebook.tasks.reservation_tasks.run_reservation_sweep")
def run_reservation_sweep() -> dict[str, int]:
    """Expire overdue reservations and send cutoff reminders."""
    return asyncio.run(_run_sweep())


@celery_app.task(name="venuebook.tasks.reservation_tasks.purge_stale_pending_deposits")
def purge_stale_pending_deposits() -> int:
    """Delete reservations whose deposit was never paid."""
    return asyncio.run(_purge())
