"""Tests for the stale pending-booking purge."""

import pytest
from sqlalchemy import func, select

from conftest import slot
from venuebook.errors import SlotConflict
from venuebook.models.booking import Booking, BookingSlot
from venuebook.notifications import events
from venuebook.payments.gateway import GatewayPaymentStatus, VerificationResult
from venuebook.services.booking_service import BookingRequest
from venuebook.services.booking_sweep import BookingSweep
from venuebook.services.platform_settings import PENDING_BOOKING_EXPIRY_MINUTES, StaticSettingsProvider
from venuebook.services.reservation_service import WalkInDetails

pytestmark = pytest.mark.asyncio

WALK_IN = WalkInDetails(full_name="Tunde Walkin", phone="+2348066666666")


def _request(hall, time_range) -> BookingRequest:
    return BookingRequest(hall_id=hall.id, booking_dates=[time_range], event_details="Naming ceremony")


class TestPurgeStalePendingBookings:
    async def test_unpaid_booking_releases_slot(
        self, db_session, booking_service, booking_sweep, sender, customer, hall, clock
    ):
        time_range = slot(clock, days=5)
        created = await booking_service.create_online(customer, _request(hall, time_range))
        with pytest.raises(SlotConflict):
            await booking_service.create_online(customer, _request(hall, time_range))

        clock.advance(minutes=31)
        purged = await booking_sweep.purge_stale_pending_bookings()

        assert purged == 1
        assert await db_session.get(Booking, created.booking.id) is None
        assert await db_session.scalar(select(func.count()).select_from(BookingSlot)) == 0
        assert len(sender.of(events.BOOKING_PAYMENT_LAPSED)) == 3
        again = await booking_service.create_online(customer, _request(hall, time_range))
        assert again.booking.id != created.booking.id

    async def test_second_run_changes_nothing(self, booking_service, booking_sweep, customer, hall, clock):
        await booking_service.create_online(customer, _request(hall, slot(clock)))
        clock.advance(minutes=31)

        assert await booking_sweep.purge_stale_pending_bookings() == 1
        assert await booking_sweep.purge_stale_pending_bookings() == 0

    async def test_fresh_paid_and_walk_in_bookings_kept(
        self, db_session, booking_service, booking_sweep, correlator, customer, staff_member, hall, clock
    ):
        paid = await booking_service.create_online(customer, _request(hall, slot(clock, days=5)))
        await correlator.apply(paid.booking.payment_reference, VerificationResult(GatewayPaymentStatus.PAID, "pi_1"))
        walk_in = await booking_service.create_walk_in(
            staff_member, _request(hall, slot(clock, days=6)), WALK_IN, "cash"
        )
        clock.advance(minutes=31)
        fresh = await booking_service.create_online(customer, _request(hall, slot(clock, days=7)))

        assert await booking_sweep.purge_stale_pending_bookings() == 0
        for booking_id in (paid.booking.id, walk_in.id, fresh.booking.id):
            assert await db_session.get(Booking, booking_id) is not None

    async def test_hold_comes_from_settings(self, db_session, booking_service, sender, customer, hall, clock):
        created = await booking_service.create_online(customer, _request(hall, slot(clock)))
        sweep = BookingSweep(
            db_session,
            sender=sender,
            settings_provider=StaticSettingsProvider({PENDING_BOOKING_EXPIRY_MINUTES: 120}),
            clock=clock,
        )

        clock.advance(minutes=31)
        assert await sweep.purge_stale_pending_bookings() == 0
        clock.advance(minutes=90)
        assert await sweep.purge_stale_pending_bookings() == 1
        assert await db_session.get(Booking, created.booking.id) is None

    async def test_payment_after_purge_is_reported_as_orphaned(
        self, db_session, booking_service, booking_sweep, correlator, sender, customer, hall, admin, clock
    ):
        created = await booking_service.create_online(customer, _request(hall, slot(clock)))
        reference = created.booking.payment_reference
        clock.advance(minutes=31)
        await booking_sweep.purge_stale_pending_bookings()

        outcome = await correlator.apply(reference, VerificationResult(GatewayPaymentStatus.PAID, "pi_late"))

        assert outcome.applied is True
        assert await db_session.scalar(select(func.count()).select_from(Booking)) == 0
        orphaned = sender.of(events.ORPHANED_PAYMENT)
        assert {n.recipient_id for n in orphaned} == {hall.owner_id, admin.id}
