"""Celery application — Redis broker, beat schedule, shared logging."""

from typing import Any

from celery import Celery
from celery.signals import setup_logging

from venuebook.config import settings
from venuebook.logging_config import configure_logging


def create_celery_app() -> Celery:
    """Create and configure the Celery application."""
    celery_app = Celery(
        "venuebook",
        broker=settings.broker_url,
        backend=settings.broker_url,
    )
    celery_app.conf.update(
        {
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "timezone": "UTC",
            "enable_utc": True,
            "task_ignore_result": True,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            "task_soft_time_limit": 240,
            "task_time_limit": 300,
            "worker_hijack_root_logger": False,
        }
    )
    celery_app.conf.imports = (
        "venuebook.tasks.notification_tasks",
        "venuebook.tasks.reservation_tasks",
        "venuebook.tasks.booking_tasks",
    )
    celery_app.conf.task_routes = {
        "venuebook.tasks.notification_tasks.*": {"queue": "notifications"},
        "venuebook.tasks.reservation_tasks.*": {"queue": "maintenance"},
        "venuebook.tasks.booking_tasks.*": {"queue": "maintenance"},
    }

    from venuebook.tasks.beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule()
    return celery_app


@setup_logging.connect
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Use the application's log format instead of Celery's."""
    configure_logging()


celery_app = create_celery_app()
