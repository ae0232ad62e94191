"""Periodic reservation maintenance.

- ``expire_overdue``: ACTIVE reservations past their cutoff become EXPIRED.
- ``send_reminders``: ACTIVE reservations whose cutoff is between ``h-1``
  and ``h`` hours away get one reminder per window ``h``.
- ``purge_stale_pending_deposits``: ACTIVE reservations whose deposit is
  still pending after the pending-deposit window are deleted.

Every pass selects by persisted state, so running a pass twice in a row
changes nothing the second time.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.config import settings
from venuebook.database import utcnow
from venuebook.models.reservation import PaymentStatus, Reservation, ReservationStatus
from venuebook.notifications import events
from venuebook.notifications.events import Outbox
from venuebook.notifications.recipients import customer_of, notices_for
from venuebook.notifications.sender import NotificationSender
from venuebook.services.platform_settings import SettingsProvider, pending_deposit_hold
from venuebook.services.reservation_service import expire_reservation

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    expired: int = 0
    reminded: int = 0
    purged: int = 0


def window_name(hours: int) -> str:
    return f"{hours}h"


class ReservationSweep:
    def __init__(
        self,
        db: AsyncSession,
        *,
        sender: NotificationSender,
        settings_provider: SettingsProvider,
        clock: Callable[[], datetime] = utcnow,
        reminder_windows_hours: list[int] | None = None,
    ) -> None:
        self.db = db
        self.sender = sender
        self.settings = settings_provider
        self.clock = clock
        self.reminder_windows_hours = reminder_windows_hours or settings.reminder_windows_hours

    async def run(self) -> SweepReport:
        """Expire, then remind. The two passes select disjoint rows."""
        now = self.clock()
        report = SweepReport()
        report.expired = await self.expire_overdue(now)
        report.reminded = await self.send_reminders(now)
        logger.info("Reservation sweep: %d expired, %d reminded", report.expired, report.reminded)
        return report

    async def expire_overdue(self, now: datetime) -> int:
        result = await self.db.execute(
            select(Reservation).where(
                Reservation.status == ReservationStatus.ACTIVE.value,
                Reservation.cutoff_date < now,
            )
        )
        outbox = Outbox()
        expired = 0
        for reservation in result.scalars().all():
            if await expire_reservation(self.db, reservation, now, outbox):
                expired += 1
        await outbox.dispatch(self.sender)
        return expired

    async def send_reminders(self, now: datetime) -> int:
        reminded = 0
        for hours in sorted(set(self.reminder_windows_hours), reverse=True):
            window = window_name(hours)
            result = await self.db.execute(
                select(Reservation).where(
                    Reservation.status == ReservationStatus.ACTIVE.value,
                    Reservation.cutoff_date >= now + timedelta(hours=hours - 1),
                    Reservation.cutoff_date < now + timedelta(hours=hours),
                )
            )
            for reservation in result.scalars().all():
                if reservation.reminded_for(window):
                    continue
                await self._remind(reservation, window, now)
                reminded += 1
        return reminded

    async def _remind(self, reservation: Reservation, window: str, now: datetime) -> None:
        # reassign so the JSON column is flagged dirty
        reservation.reminders_sent = [
            *(reservation.reminders_sent or []),
            {"window": window, "sent_at": now.isoformat()},
        ]
        await self.db.commit()
        logger.info("%s reminder recorded for reservation %s", window, reservation.reservation_code)

        hall = reservation.hall
        outbox = Outbox()
        outbox.emit(
            events.RESERVATION_REMINDER,
            reservation.id,
            await notices_for(
                self.db,
                hall,
                await customer_of(self.db, reservation),
                customer_message=(
                    f"Your reservation for {hall.name} expires at {reservation.cutoff_date:%Y-%m-%d %H:%M} UTC. "
                    "Complete your payment to confirm the booking."
                ),
                staff_message=(
                    f"Reservation {reservation.reservation_code} for {hall.name} expires within {window}."
                ),
                customer_link=f"/reservations/{reservation.id}",
                staff_link="/admin/reservations",
            ),
        )
        await outbox.dispatch(self.sender)

    async def purge_stale_pending_deposits(self) -> int:
        """Delete ACTIVE reservations whose deposit never arrived in time."""
        now = self.clock()
        hold = await pending_deposit_hold(self.settings)
        result = await self.db.execute(
            select(Reservation).where(
                Reservation.status == ReservationStatus.ACTIVE.value,
                Reservation.payment_status == PaymentStatus.PENDING.value,
                Reservation.created_at < now - hold,
            )
        )
        purged = 0
        outbox = Outbox()
        minutes = int(hold.total_seconds() // 60)
        for reservation in result.scalars().all():
            hall = reservation.hall
            customer = await customer_of(self.db, reservation)
            notices = await notices_for(
                self.db,
                hall,
                customer,
                customer_message=(
                    f"Your reservation {reservation.reservation_code} for {hall.name} was cancelled because "
                    "it was not paid for within the allowed time."
                ),
                staff_message=(
                    f"An unpaid reservation ({reservation.reservation_code}) for {hall.name} was auto-cancelled "
                    f"after {minutes} minutes."
                ),
                staff_link="/admin/reservations",
            )
            deleted = await self.db.execute(
                delete(Reservation).where(
                    Reservation.id == reservation.id,
                    Reservation.status == ReservationStatus.ACTIVE.value,
                    Reservation.payment_status == PaymentStatus.PENDING.value,
                )
            )
            if deleted.rowcount != 1:
                continue
            await self.db.commit()
            purged += 1
            logger.info("Deleted stale pending reservation %s", reservation.reservation_code)
            outbox.emit(events.RESERVATION_DEPOSIT_LAPSED, reservation.id, notices)

        await outbox.dispatch(self.sender)
        if purged:
            logger.info("Purged %d stale pending reservations", purged)
        return purged
