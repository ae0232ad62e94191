"""Domain events emitted at the end of state transitions.

Services collect events in an :class:`Outbox` while a transition runs and
dispatch them only after the transition has committed. Delivery is
best-effort: a failing notice is logged and never propagates.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from venuebook.notifications.recipients import Recipient

logger = logging.getLogger(__name__)

RESERVATION_PENDING_PAYMENT = "reservation.pending_payment"
RESERVATION_CONFIRMED = "reservation.confirmed"
RESERVATION_PAYMENT_FAILED = "reservation.payment_failed"
RESERVATION_EXPIRED = "reservation.expired"
RESERVATION_REMINDER = "reservation.reminder"
RESERVATION_DEPOSIT_LAPSED = "reservation.deposit_lapsed"
CONVERSION_FAILED = "reservation.conversion_failed"
BOOKING_CONFIRMED = "booking.confirmed"
BOOKING_PENDING_PAYMENT = "booking.pending_payment"
BOOKING_PAYMENT_FAILED = "booking.payment_failed"
BOOKING_PAYMENT_LAPSED = "booking.payment_lapsed"
BOOKING_CANCELLED = "booking.cancelled"
ORPHANED_PAYMENT = "payment.orphaned"


@dataclass(frozen=True)
class Notice:
    """One message for one recipient."""

    event: str
    recipient_id: uuid.UUID | None
    email: str | None
    message: str
    link: str | None = None


@dataclass
class DomainEvent:
    name: str
    aggregate_id: uuid.UUID
    notices: list[Notice] = field(default_factory=list)


class Outbox:
    """Events recorded during one state transition."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def emit(
        self,
        name: str,
        aggregate_id: uuid.UUID,
        recipients: list[tuple[Recipient, str, str | None]],
    ) -> DomainEvent:
        """Record ``name`` with one notice per ``(recipient, message, link)``."""
        event = DomainEvent(
            name=name,
            aggregate_id=aggregate_id,
            notices=[
                Notice(
                    event=name,
                    recipient_id=recipient.user_id,
                    email=recipient.email,
                    message=message,
                    link=link,
                )
                for recipient, message, link in recipients
                if recipient.user_id is not None or recipient.email
            ],
        )
        self.events.append(event)
        return event

    async def dispatch(self, sender) -> int:
        """Hand every notice to ``sender``; returns the number delivered."""
        delivered = 0
        for event in self.events:
            for notice in event.notices:
                try:
                    await sender.send(
                        notice.recipient_id,
                        notice.message,
                        notice.link,
                        email=notice.email,
                        event=notice.event,
                    )
                    delivered += 1
                except Exception:
                    logger.exception("Failed to dispatch %s notice for %s", event.name, event.aggregate_id)
        self.events.clear()
        return delivered

    @property
    def names(self) -> list[str]:
        return [event.name for event in self.events]
