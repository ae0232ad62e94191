"""Time-slot conflict detection for halls.

A hall's buffer pads every requested range on both sides: a stored range
``[s, e)`` blocks a request ``[rs, re)`` when ``s < re + b`` and
``e > rs - b``. Blocking rows are:

- bookings that are ``confirmed`` or still awaiting payment, unless cancelled;
- ACTIVE reservations whose deposit is paid, and ACTIVE reservations whose
  deposit is pending but younger than the pending-deposit window.

Callers must run :func:`ensure_slots_available` and the subsequent insert
inside :func:`venuebook.services.locks.hall_critical_section`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.errors import SlotConflict, ValidationFailed
from venuebook.models.booking import Booking, BookingSlot, BookingStatus
from venuebook.models.reservation import (
    PaymentStatus,
    Reservation,
    ReservationSlot,
    ReservationStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class TimeRange:
    """A half-open ``[start, end)`` interval in naive UTC."""

    start: datetime
    end: datetime

    @property
    def hours(self) -> Decimal:
        return Decimal((self.end - self.start).total_seconds()) / Decimal(3600)

    def buffered(self, buffer: timedelta) -> TimeRange:
        return TimeRange(self.start - buffer, self.end + buffer)

    def overlaps(self, other: TimeRange) -> bool:
        return self.start < other.end and self.end > other.start


def buffer_delta(buffer_hours: Decimal | float | int | None) -> timedelta:
    return timedelta(hours=float(buffer_hours or 0))


def ranges_conflict(existing: TimeRange, requested: TimeRange, buffer_hours: Decimal | float | int | None) -> bool:
    """Return True if ``requested`` falls inside ``existing``'s blocking window."""
    return existing.overlaps(requested.buffered(buffer_delta(buffer_hours)))


def validate_ranges(ranges: Sequence[TimeRange], now: datetime) -> list[TimeRange]:
    """Check every range is well-formed and in the future; return them sorted.

    Raises ``ValidationFailed`` naming the offending range by index.
    """
    if not ranges:
        raise ValidationFailed("At least one booking date range is required.", field="booking_dates")

    for index, time_range in enumerate(ranges):
        field = f"booking_dates[{index}]"
        if not isinstance(time_range.start, datetime) or not isinstance(time_range.end, datetime):
            raise ValidationFailed(f"{field} has a malformed start or end time.", field=field)
        if time_range.start >= time_range.end:
            raise ValidationFailed(f"{field}: start_time must be before end_time.", field=field)
        if time_range.start < now:
            raise ValidationFailed(f"{field}: start_time is in the past.", field=field)

    return sorted(ranges)


def _window_clause(slot_model, ranges: Sequence[TimeRange], buffer: timedelta):
    return or_(
        *(
            and_(slot_model.start_time < r.end + buffer, slot_model.end_time > r.start - buffer)
            for r in ranges
        )
    )


async def find_conflict(
    db: AsyncSession,
    hall_id: uuid.UUID,
    ranges: Sequence[TimeRange],
    buffer_hours: Decimal | float | int | None,
    *,
    now: datetime,
    pending_hold: timedelta,
) -> str | None:
    """Return ``"booking"`` or ``"reservation"`` for the first blocking row, else None."""
    buffer = buffer_delta(buffer_hours)

    booking_query = (
        select(Booking.id)
        .join(BookingSlot, BookingSlot.booking_id == Booking.id)
        .where(
            Booking.hall_id == hall_id,
            _window_clause(BookingSlot, ranges, buffer),
            Booking.status != BookingStatus.CANCELLED.value,
            or_(
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.payment_status == PaymentStatus.PENDING.value,
            ),
        )
        .limit(1)
    )
    if (await db.execute(booking_query)).first() is not None:
        return "booking"

    reservation_query = (
        select(Reservation.id)
        .join(ReservationSlot, ReservationSlot.reservation_id == Reservation.id)
        .where(
            Reservation.hall_id == hall_id,
            _window_clause(ReservationSlot, ranges, buffer),
            Reservation.status == ReservationStatus.ACTIVE.value,
            or_(
                Reservation.payment_status == PaymentStatus.PAID.value,
                and_(
                    Reservation.payment_status == PaymentStatus.PENDING.value,
                    Reservation.created_at >= now - pending_hold,
                ),
            ),
        )
        .limit(1)
    )
    if (await db.execute(reservation_query)).first() is not None:
        return "reservation"

    return None


async def ensure_slots_available(
    db: AsyncSession,
    hall_id: uuid.UUID,
    ranges: Sequence[TimeRange],
    buffer_hours: Decimal | float | int | None,
    *,
    now: datetime,
    pending_hold: timedelta,
) -> None:
    """Raise ``SlotConflict`` if any requested range is blocked."""
    conflict = await find_conflict(
        db,
        hall_id,
        ranges,
        buffer_hours,
        now=now,
        pending_hold=pending_hold,
    )
    if conflict is not None:
        logger.info("Slot conflict on hall %s with a %s", hall_id, conflict)
        raise SlotConflict(conflict)
