"""Notification sender — fire-and-forget hand-off to the Celery queue."""

import asyncio
import logging
import uuid
from typing import Protocol

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    async def send(
        self,
        recipient_id: uuid.UUID | None,
        message: str,
        link: str | None = None,
        *,
        email: str | None = None,
        event: str = "notification",
    ) -> None: ...


class QueueNotificationSender:
    """Enqueue a delivery task per notice; enqueue failures are logged only."""

    async def send(
        self,
        recipient_id: uuid.UUID | None,
        message: str,
        link: str | None = None,
        *,
        email: str | None = None,
        event: str = "notification",
    ) -> None:
        from venuebook.tasks.notification_tasks import deliver_notification

        try:
            await asyncio.to_thread(
                deliver_notification.delay,
                str(recipient_id) if recipient_id else None,
                message,
                link,
                email,
                event,
            )
        except Exception:
            logger.exception("Could not enqueue %s notification (recipient=%s)", event, recipient_id)
