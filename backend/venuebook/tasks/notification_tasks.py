"""Notification delivery task.

Persists an in-app notification for registered recipients and hands the
message to the email channel. Retries with backoff on database errors.
"""

import asyncio
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from venuebook.models.notification import Notification
from venuebook.models.user import User
from venuebook.tasks.celery_app import celery_app
from venuebook.tasks.session import task_session

logger = logging.getLogger(__name__)


async def store_notification(
    db,
    recipient_id: str | None,
    message: str,
    link: str | None,
    email: str | None,
    event: str,
) -> Notification | None:
    """Write the in-app row (registered users only) and log the email hand-off."""
    notification = None
    if recipient_id:
        user = await db.get(User, uuid.UUID(recipient_id))
        if user is None:
            logger.warning("Dropping %s notification for unknown user %s", event, recipient_id)
        else:
            notification = Notification(recipient_id=user.id, event=event, message=message, link=link)
            db.add(notification)
            await db.flush()
            email = email or user.email

    if email:
        logger.info("Email queued for %s: [%s] %s", email, event, message)
    return notification


async def _deliver(recipient_id, message, link, email, event) -> bool:
    async with task_session() as db:
        notification = await store_notification(db, recipient_id, message, link, email, event)
    return notification is not None


@celery_app.task(
    name="venuebook.tasks.notification_tasks.deliver_notification",
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def deliver_notification(
    recipient_id: str | None,
    message: str,
    link: str | None = None,
    email: str | None = None,
    event: str = "notification",
) -> bool:
    return asyncio.run(_deliver(recipient_id, message, link, email, event))
