"""Periodic booking maintenance.

Pay-first bookings hold their slot while payment is pending. If the
gateway never reports back, ``purge_stale_pending_bookings`` deletes the
booking once the pending-booking window has passed so the slot is free
again.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.database import utcnow
from venuebook.models.booking import Booking
from venuebook.models.reservation import PaymentStatus
from venuebook.notifications import events
from venuebook.notifications.events import Outbox
from venuebook.notifications.recipients import customer_of, notices_for
from venuebook.notifications.sender import NotificationSender
from venuebook.services.platform_settings import SettingsProvider, pending_booking_hold

logger = logging.getLogger(__name__)


class BookingSweep:
    def __init__(
        self,
        db: AsyncSession,
        *,
        sender: NotificationSender,
        settings_provider: SettingsProvider,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.sender = sender
        self.settings = settings_provider
        self.clock = clock

    async def purge_stale_pending_bookings(self) -> int:
        """Delete bookings whose payment is still pending after the hold window."""
        now = self.clock()
        hold = await pending_booking_hold(self.settings)
        result = await self.db.execute(
            select(Booking).where(
                Booking.payment_status == PaymentStatus.PENDING.value,
                Booking.created_at < now - hold,
            )
        )
        purged = 0
        outbox = Outbox()
        minutes = int(hold.total_seconds() // 60)
        for booking in result.scalars().all():
            hall = booking.hall
            notices = await notices_for(
                self.db,
                hall,
                await customer_of(self.db, booking),
                customer_message=(
                    f"Your booking {booking.booking_code} for {hall.name} was cancelled because "
                    "payment was not completed in time."
                ),
                staff_message=(
                    f"An unpaid booking ({booking.booking_code}) for {hall.name} was removed "
                    f"after {minutes} minutes."
                ),
                staff_link="/admin/bookings",
            )
            deleted = await self.db.execute(
                delete(Booking).where(
                    Booking.id == booking.id,
                    Booking.payment_status == PaymentStatus.PENDING.value,
                    Booking.created_at < now - hold,
                )
            )
            if deleted.rowcount != 1:
                continue
            await self.db.commit()
            purged += 1
            logger.info("Deleted stale pending booking %s", booking.booking_code)
            outbox.emit(events.BOOKING_PAYMENT_LAPSED, booking.id, notices)

        await outbox.dispatch(self.sender)
        if purged:
            logger.info("Purged %d stale pending bookings", purged)
        return purged
