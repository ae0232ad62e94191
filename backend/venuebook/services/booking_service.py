"""Direct bookings — pay-first online bookings and staff walk-in bookings."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.database import utcnow
from venuebook.errors import (
    BookingStateError,
    Forbidden,
    NotAuthenticated,
    NotFound,
    PaymentGatewayError,
    ValidationFailed,
)
from venuebook.models.booking import Booking, BookingSlot, BookingStatus
from venuebook.models.hall import Hall
from venuebook.models.payment import PaymentPurpose, PaymentRecord
from venuebook.models.reservation import PaymentStatus
from venuebook.models.user import User
from venuebook.notifications import events
from venuebook.notifications.events import Outbox
from venuebook.notifications.recipients import customer_of, notices_for
from venuebook.notifications.sender import NotificationSender
from venuebook.payments.correlation import register_payment
from venuebook.payments.gateway import (
    CheckoutSession,
    GatewayPaymentStatus,
    PaymentGateway,
    PaymentRequest,
    VerificationResult,
)
from venuebook.payments.references import callback_url, mint_reference
from venuebook.services.codes import insert_with_unique_code, next_booking_code
from venuebook.services.conflicts import TimeRange, ensure_slots_available, validate_ranges
from venuebook.services.listing import ListFilters, paginate
from venuebook.services.locks import hall_critical_section
from venuebook.services.platform_settings import (
    SettingsProvider,
    allowed_payment_methods,
    pending_deposit_hold,
)
from venuebook.services.pricing import FacilityRequest, quote
from venuebook.services.reservation_service import ONLINE, WALK_IN, WalkInDetails, report_orphaned_payment

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    hall_id: uuid.UUID
    booking_dates: list[TimeRange]
    event_details: str
    selected_facilities: list[FacilityRequest] = field(default_factory=list)


@dataclass
class BookingCreated:
    booking: Booking
    checkout: CheckoutSession | None = None


class BookingService:
    def __init__(
        self,
        db: AsyncSession,
        *,
        gateway: PaymentGateway,
        sender: NotificationSender,
        settings_provider: SettingsProvider,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.gateway = gateway
        self.sender = sender
        self.settings = settings_provider
        self.clock = clock

    async def _insert(
        self,
        request: BookingRequest,
        *,
        actor: User,
        walk_in: WalkInDetails | None,
        payment_method: str,
        payment_status: PaymentStatus,
    ) -> tuple[Booking, PaymentRecord | None]:
        if not (request.event_details or "").strip():
            raise ValidationFailed("Event details are required.", field="event_details")

        now = self.clock()
        ranges = validate_ranges(request.booking_dates, now)
        hold = await pending_deposit_hold(self.settings)
        record = None

        async with hall_critical_section(self.db, request.hall_id) as hall:
            if walk_in is not None and not hall.is_managed_by(actor):
                raise Forbidden("You are not authorized to manage bookings for this hall.")

            price = quote(hall, ranges, request.selected_facilities)
            await ensure_slots_available(
                self.db, hall.id, ranges, hall.booking_buffer_hours, now=now, pending_hold=hold
            )

            booking = Booking(
                hall_id=hall.id,
                user_id=None if walk_in else actor.id,
                booked_by_id=actor.id,
                event_details=request.event_details.strip(),
                booking_type=WALK_IN if walk_in else ONLINE,
                walk_in_full_name=walk_in.full_name.strip() if walk_in else None,
                walk_in_phone=walk_in.phone.strip() if walk_in else None,
                walk_in_email=walk_in.email if walk_in else None,
                total_price=price.total_price,
                hall_price=price.hall_price,
                facilities_price=price.facilities_price,
                selected_facilities=price.facilities_snapshot,
                payment_method=payment_method,
                payment_status=payment_status.value,
                status=BookingStatus.CONFIRMED.value,
                created_at=now,
                slots=[BookingSlot(start_time=r.start, end_time=r.end) for r in ranges],
            )
            hall_name = hall.name

            async def _code() -> str:
                return await next_booking_code(self.db, hall_name, now)

            await insert_with_unique_code(self.db, booking, _code, attribute="booking_code")

            if payment_status == PaymentStatus.PENDING:
                reference = mint_reference(PaymentPurpose.BOOKING_PAYMENT, booking.id)
                booking.payment_reference = reference
                record = register_payment(
                    self.db,
                    reference=reference,
                    purpose=PaymentPurpose.BOOKING_PAYMENT,
                    target_id=booking.id,
                    amount=booking.total_price,
                    hall_id=hall.id,
                )
                await self.db.flush()

        logger.info(
            "Booking %s created on hall %s (%s, %s)",
            booking.booking_code,
            booking.hall_id,
            booking.payment_method,
            booking.payment_status,
        )
        return booking, record

    async def create_online(self, actor: User | None, request: BookingRequest) -> BookingCreated:
        """Pay-first booking: hold the slot with a pending payment and open a checkout."""
        if actor is None:
            raise NotAuthenticated("Authentication is required to book a hall.")
        booking, record = await self._insert(
            request,
            actor=actor,
            walk_in=None,
            payment_method=ONLINE,
            payment_status=PaymentStatus.PENDING,
        )

        try:
            checkout = await self.gateway.initialize(
                PaymentRequest(
                    reference=record.reference,
                    amount=record.amount,
                    description=f"Booking {booking.booking_code}",
                    redirect_url=callback_url("bookings/verify", record.reference),
                    customer_name=actor.full_name,
                    customer_email=actor.email,
                )
            )
        except PaymentGatewayError:
            logger.warning("Checkout failed for booking %s; discarding it", booking.booking_code)
            record.status = PaymentStatus.FAILED.value
            record.applied_at = self.clock()
            await self.db.delete(booking)
            await self.db.commit()
            raise
        record.gateway_session_id = checkout.session_id
        record.checkout_url = checkout.checkout_url
        await self.db.commit()

        outbox = Outbox()
        outbox.emit(
            events.BOOKING_PENDING_PAYMENT,
            booking.id,
            await notices_for(
                self.db,
                booking.hall,
                await customer_of(self.db, booking),
                customer_message=(
                    f"Complete payment of {booking.total_price} to confirm booking {booking.booking_code} "
                    f"for {booking.hall.name}."
                ),
                staff_message=f"New booking {booking.booking_code} for {booking.hall.name} is awaiting payment.",
                customer_link=checkout.checkout_url,
                staff_link="/admin/bookings",
            ),
        )
        await outbox.dispatch(self.sender)
        return BookingCreated(booking=booking, checkout=checkout)

    async def create_walk_in(
        self,
        actor: User | None,
        request: BookingRequest,
        walk_in: WalkInDetails,
        payment_method: str,
    ) -> Booking:
        """Staff-recorded booking for an unregistered customer, settled offline."""
        if actor is None:
            raise NotAuthenticated("Authentication is required.")
        if not actor.is_elevated:
            raise Forbidden("Only hall staff can create walk-in bookings.")
        if not (walk_in.full_name or "").strip() or not (walk_in.phone or "").strip():
            raise ValidationFailed("Walk-in customer full name and phone are required.", field="walk_in_customer")
        method = (payment_method or "").lower()
        if method == ONLINE:
            raise ValidationFailed(
                "Walk-in bookings are settled offline; use a walk-in reservation for online payment.",
                field="payment_method",
            )
        if method not in await allowed_payment_methods(self.settings):
            raise ValidationFailed(f"Payment method {payment_method!r} is not enabled.", field="payment_method")

        booking, _ = await self._insert(
            request,
            actor=actor,
            walk_in=walk_in,
            payment_method=method,
            payment_status=PaymentStatus.PAID,
        )
        await self._announce_confirmed(booking)
        return booking

    async def _announce_confirmed(self, booking: Booking) -> None:
        outbox = Outbox()
        outbox.emit(
            events.BOOKING_CONFIRMED,
            booking.id,
            await notices_for(
                self.db,
                booking.hall,
                await customer_of(self.db, booking),
                customer_message=f"Your booking {booking.booking_code} for {booking.hall.name} is confirmed.",
                staff_message=f"Booking {booking.booking_code} for {booking.hall.name} is confirmed.",
                customer_link=f"/bookings/{booking.id}",
                staff_link="/admin/bookings",
            ),
        )
        await outbox.dispatch(self.sender)

    async def apply_payment_outcome(self, record: PaymentRecord, result: VerificationResult) -> None:
        """Mark a pay-first booking paid, or failed and cancelled."""
        booking = await self.db.get(Booking, record.target_id)
        if booking is None:
            logger.warning("Payment %s resolved for missing booking %s", record.reference, record.target_id)
            if result.status == GatewayPaymentStatus.PAID:
                await report_orphaned_payment(self.db, self.sender, record, "booking that no longer exists")
            return

        now = self.clock()
        pending = (
            Booking.id == booking.id,
            Booking.payment_status == PaymentStatus.PENDING.value,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        if result.status == GatewayPaymentStatus.PAID:
            moved = await self.db.execute(
                update(Booking)
                .where(*pending)
                .values(
                    payment_status=PaymentStatus.PAID.value,
                    transaction_reference=result.gateway_transaction_id,
                    updated_at=now,
                )
            )
            if moved.rowcount != 1:
                logger.info("Booking %s payment already settled (%s)", booking.booking_code, booking.payment_status)
                return
            await self.db.commit()
            logger.info("Booking %s paid", booking.booking_code)
            await self._announce_confirmed(booking)

        elif result.status == GatewayPaymentStatus.FAILED:
            moved = await self.db.execute(
                update(Booking)
                .where(*pending)
                .values(
                    payment_status=PaymentStatus.FAILED.value,
                    status=BookingStatus.CANCELLED.value,
                    cancelled_at=now,
                    updated_at=now,
                )
            )
            if moved.rowcount != 1:
                logger.info("Ignoring failed payment for booking %s", booking.booking_code)
                return
            await self.db.commit()
            logger.info("Booking %s cancelled after failed payment", booking.booking_code)

            outbox = Outbox()
            outbox.emit(
                events.BOOKING_PAYMENT_FAILED,
                booking.id,
                await notices_for(
                    self.db,
                    booking.hall,
                    await customer_of(self.db, booking),
                    customer_message=(
                        f"Payment for booking {booking.booking_code} at {booking.hall.name} failed. "
                        "The slot has been released."
                    ),
                    staff_message=f"Booking {booking.booking_code} was cancelled after a failed payment.",
                    staff_link="/admin/bookings",
                ),
            )
            await outbox.dispatch(self.sender)

    async def cancel(self, actor: User, booking_id: uuid.UUID) -> Booking:
        booking = await self._get(booking_id)
        if booking.user_id != actor.id and not booking.hall.is_managed_by(actor):
            raise Forbidden("You are not authorized to cancel this booking.")

        now = self.clock()
        moved = await self.db.execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == BookingStatus.CONFIRMED.value)
            .values(status=BookingStatus.CANCELLED.value, cancelled_at=now, updated_at=now)
        )
        if moved.rowcount != 1:
            raise BookingStateError("Booking is already cancelled.")
        await self.db.commit()
        logger.info("Booking %s cancelled by %s", booking.booking_code, actor.id)

        outbox = Outbox()
        outbox.emit(
            events.BOOKING_CANCELLED,
            booking.id,
            await notices_for(
                self.db,
                booking.hall,
                await customer_of(self.db, booking),
                customer_message=f"Your booking {booking.booking_code} for {booking.hall.name} was cancelled.",
                staff_message=f"Booking {booking.booking_code} for {booking.hall.name} was cancelled.",
                customer_link=f"/bookings/{booking.id}",
                staff_link="/admin/bookings",
            ),
        )
        await outbox.dispatch(self.sender)
        return booking

    async def _get(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found")
        return booking

    async def list_bookings(
        self,
        filters: ListFilters,
        *,
        hall_id: uuid.UUID | None = None,
        user_id: uuid.UUID | None = None,
    ) -> tuple[list[Booking], int]:
        conditions = []
        if hall_id is not None:
            conditions.append(Booking.hall_id == hall_id)
        if user_id is not None:
            conditions.append(Booking.user_id == user_id)
        if filters.status:
            value = filters.status.lower()
            if value not in {s.value for s in BookingStatus}:
                raise ValidationFailed(f"Unknown booking status {filters.status!r}.", field="status")
            conditions.append(Booking.status == value)
        if filters.payment_status:
            value = filters.payment_status.lower()
            if value not in {s.value for s in PaymentStatus}:
                raise ValidationFailed(f"Unknown payment status {filters.payment_status!r}.", field="payment_status")
            conditions.append(Booking.payment_status == value)
        return await paginate(self.db, Booking, conditions, filters)

    async def list_for_hall(
        self, actor: User, hall_id: uuid.UUID, filters: ListFilters
    ) -> tuple[list[Booking], int]:
        hall = await self.db.get(Hall, hall_id)
        if hall is None:
            raise NotFound("Hall not found")
        if not hall.is_managed_by(actor):
            raise Forbidden("You are not authorized to view bookings for this hall.")
        return await self.list_bookings(filters, hall_id=hall_id)
