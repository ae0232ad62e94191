"""Periodic booking maintenance tasks (scheduled by Celery Beat)."""

import asyncio
import logging

from venuebook.notifications.sender import QueueNotificationSender
from venuebook.services.booking_sweep import BookingSweep
from venuebook.services.platform_settings import DatabaseSettingsProvider
from venuebook.tasks.celery_app import celery_app
from venuebook.tasks.session import task_session

logger = logging.getLogger(__name__)


async def _purge() -> int:
    async with task_session() as db:
        sweep = BookingSweep(
            db,
            sender=QueueNotificationSender(),
            settings_provider=DatabaseSettingsProvider(db),
        )
        return await sweep.purge_stale_pending_bookings()


@celery_app.task(name="venuebook.tasks.booking_tasks.purge_stale_pending_bookings")
def purge_stale_pending_bookings() -> int:
    """Delete pay-first bookings whose payment never completed."""
    return asyncio.run(_purge())
