"""Celery Beat schedule for reservation and booking maintenance."""

from datetime import timedelta
from typing import Any

from venuebook.config import settings


def get_beat_schedule() -> dict[str, dict[str, Any]]:
    return {
        # Expire overdue reservations and send cutoff reminders
        "reservation-sweep": {
            "task": "venuebook.tasks.reservation_tasks.run_reservation_sweep",
            "schedule": timedelta(minutes=settings.sweep_interval_minutes),
        },
        # Release slots held by deposits that were never paid
        "purge-stale-pending-deposits": {
            "task": "venuebook.tasks.reservation_tasks.purge_stale_pending_deposits",
            "schedule": timedelta(minutes=settings.stale_deposit_cleanup_interval_minutes),
        },
        # Release slots held by pay-first bookings that were never paid
        "purge-stale-pending-bookings": {
            "task": "venuebook.tasks.booking_tasks.purge_stale_pending_bookings",
            "schedule": timedelta(minutes=settings.stale_booking_cleanup_interval_minutes),
        },
    }
