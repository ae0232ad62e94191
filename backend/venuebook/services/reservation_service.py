"""Reservation lifecycle — create, take the deposit, convert to a booking.

Reservations move one way only::

    ACTIVE -> CONVERTED | EXPIRED | CONVERSION_FAILED

Every transition is a guarded ``UPDATE ... WHERE status = ...`` whose
row count decides whether this caller won. Transitions commit before
their notifications are dispatched, and a failing notification never
undoes a transition.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.database import utcnow
from venuebook.errors import (
    Forbidden,
    NotAuthenticated,
    NotFound,
    PaymentGatewayError,
    ReservationExpired,
    ReservationStateError,
    ValidationFailed,
)
from venuebook.models.booking import Booking, BookingSlot, BookingStatus
from venuebook.models.hall import Hall
from venuebook.models.payment import PaymentPurpose, PaymentRecord
from venuebook.models.reservation import (
    PaymentStatus,
    Reservation,
    ReservationSlot,
    ReservationStatus,
)
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
from venuebook.services.codes import insert_with_unique_code, new_reservation_code, next_booking_code
from venuebook.services.conflicts import TimeRange, ensure_slots_available, validate_ranges
from venuebook.services.listing import ListFilters, paginate
from venuebook.services.locks import hall_critical_section
from venuebook.services.platform_settings import (
    SettingsProvider,
    allowed_payment_methods,
    pending_deposit_hold,
)
from venuebook.services.pricing import FacilityRequest, quote

logger = logging.getLogger(__name__)

ONLINE = "online"
WALK_IN = "walk-in"


@dataclass(frozen=True)
class WalkInDetails:
    full_name: str
    phone: str
    email: str | None = None


@dataclass
class ReservationRequest:
    hall_id: uuid.UUID
    booking_dates: list[TimeRange]
    event_details: str
    selected_facilities: list[FacilityRequest] = field(default_factory=list)
    walk_in_customer: WalkInDetails | None = None
    payment_method: str = ONLINE


@dataclass
class ReservationCreated:
    reservation: Reservation
    checkout: CheckoutSession | None = None


@dataclass
class ConversionResult:
    """Either a finalized booking or a checkout for the remaining balance."""

    reservation: Reservation
    booking: Booking | None = None
    checkout: CheckoutSession | None = None


def cutoff_for(hall: Hall, first_start: datetime, now: datetime) -> datetime:
    """Deadline for full payment: the hall's cutoff hours before the first range."""
    hours = hall.reservation_cutoff_hours
    if hours is None or hours <= 0:
        raise ValidationFailed("This hall does not accept reservations.", field="hall_id")
    cutoff = first_start - timedelta(hours=hours)
    if cutoff <= now:
        raise ValidationFailed(
            f"Reservations for this hall must be made at least {hours} hours before the event. "
            "Book directly instead.",
            field="booking_dates",
        )
    return cutoff


async def expire_reservation(
    db: AsyncSession, reservation: Reservation, now: datetime, outbox: Outbox
) -> bool:
    """Move an ACTIVE reservation to EXPIRED and commit; False if it was not ACTIVE."""
    result = await db.execute(
        update(Reservation)
        .where(Reservation.id == reservation.id, Reservation.status == ReservationStatus.ACTIVE.value)
        .values(status=ReservationStatus.EXPIRED.value, updated_at=now)
    )
    if result.rowcount != 1:
        return False
    await db.commit()
    logger.info("Reservation %s -> EXPIRED", reservation.reservation_code)

    hall = reservation.hall
    outbox.emit(
        events.RESERVATION_EXPIRED,
        reservation.id,
        await notices_for(
            db,
            hall,
            await customer_of(db, reservation),
            customer_message=f"Your reservation for {hall.name} has expired.",
            staff_message=f"Reservation {reservation.reservation_code} for {hall.name} expired unconverted.",
            customer_link=f"/reservations/{reservation.id}",
            staff_link="/admin/reservations",
        ),
    )
    return True


async def report_orphaned_payment(
    db: AsyncSession, sender: NotificationSender, record: PaymentRecord, target: str
) -> None:
    """Tell the hall audience about money received for a target that cannot take it."""
    logger.warning("Orphaned payment %s (%s %s)", record.reference, record.amount, record.currency)
    hall = await db.get(Hall, record.hall_id) if record.hall_id else None
    outbox = Outbox()
    outbox.emit(
        events.ORPHANED_PAYMENT,
        record.target_id,
        await notices_for(
            db,
            hall,
            None,
            customer_message=None,
            staff_message=(
                f"Payment {record.reference} of {record.amount} {record.currency.upper()} arrived for a "
                f"{target}. Reconcile or refund it manually."
            ),
            staff_link="/admin/payments",
        ),
    )
    await outbox.dispatch(sender)


class ReservationService:
    """State machine for one request's worth of reservation operations."""

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

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, actor: User | None, request: ReservationRequest) -> ReservationCreated:
        """Hold the requested ranges with an ACTIVE reservation.

        Online reservations start with a pending deposit and a gateway
        checkout; offline walk-in reservations are paid on creation.
        """
        walk_in = request.walk_in_customer
        if actor is None:
            raise NotAuthenticated("Authentication is required to make a reservation.")
        if walk_in is not None:
            if not actor.is_elevated:
                raise Forbidden("Only hall staff can create walk-in reservations.")
            if not (walk_in.full_name or "").strip() or not (walk_in.phone or "").strip():
                raise ValidationFailed(
                    "Walk-in customer full name and phone are required.", field="walk_in_customer"
                )
        if not (request.event_details or "").strip():
            raise ValidationFailed("Event details are required.", field="event_details")

        method = (request.payment_method or ONLINE).lower()
        if method != ONLINE and walk_in is None:
            raise ValidationFailed("Only walk-in reservations can be settled offline.", field="payment_method")
        if method not in await allowed_payment_methods(self.settings):
            raise ValidationFailed(f"Payment method {method!r} is not enabled.", field="payment_method")
        offline = method != ONLINE

        now = self.clock()
        ranges = validate_ranges(request.booking_dates, now)
        hold = await pending_deposit_hold(self.settings)
        record: PaymentRecord | None = None

        async with hall_critical_section(self.db, request.hall_id) as hall:
            if walk_in is not None and not hall.is_managed_by(actor):
                raise Forbidden("You are not authorized to manage reservations for this hall.")

            price = quote(hall, ranges, request.selected_facilities)
            cutoff = cutoff_for(hall, ranges[0].start, now)
            await ensure_slots_available(
                self.db, hall.id, ranges, hall.booking_buffer_hours, now=now, pending_hold=hold
            )

            reservation = Reservation(
                hall_id=hall.id,
                user_id=None if walk_in else actor.id,
                reserved_by_id=actor.id,
                reservation_type=WALK_IN if walk_in else ONLINE,
                event_details=request.event_details.strip(),
                walk_in_full_name=walk_in.full_name.strip() if walk_in else None,
                walk_in_phone=walk_in.phone.strip() if walk_in else None,
                walk_in_email=walk_in.email if walk_in else None,
                total_price=price.total_price,
                hall_price=price.hall_price,
                facilities_price=price.facilities_price,
                reservation_fee=price.reservation_fee,
                selected_facilities=price.facilities_snapshot,
                payment_method=method,
                payment_status=(PaymentStatus.PAID if offline else PaymentStatus.PENDING).value,
                status=ReservationStatus.ACTIVE.value,
                cutoff_date=cutoff,
                reminders_sent=[],
                created_at=now,
                slots=[ReservationSlot(start_time=r.start, end_time=r.end) for r in ranges],
            )
            hall_name = hall.name

            async def _code() -> str:
                return new_reservation_code(hall_name, now)

            await insert_with_unique_code(self.db, reservation, _code, attribute="reservation_code")

            if not offline:
                reference = mint_reference(PaymentPurpose.RESERVATION_DEPOSIT, reservation.id)
                reservation.payment_reference = reference
                record = register_payment(
                    self.db,
                    reference=reference,
                    purpose=PaymentPurpose.RESERVATION_DEPOSIT,
                    target_id=reservation.id,
                    amount=reservation.reservation_fee,
                    hall_id=hall.id,
                )
                await self.db.flush()

        logger.info(
            "Reservation %s created on hall %s (deposit %s, %s)",
            reservation.reservation_code,
            reservation.hall_id,
            reservation.reservation_fee,
            reservation.payment_status,
        )

        checkout = None
        if record is not None:
            checkout = await self._start_deposit_payment(reservation, record, actor)

        outbox = Outbox()
        customer = await customer_of(self.db, reservation)
        if offline:
            outbox.emit(
                events.RESERVATION_CONFIRMED,
                reservation.id,
                await notices_for(
                    self.db,
                    reservation.hall,
                    customer,
                    customer_message=(
                        f"Your reservation {reservation.reservation_code} for {reservation.hall.name} "
                        "is confirmed."
                    ),
                    staff_message=(
                        f"Walk-in reservation {reservation.reservation_code} for {reservation.hall.name} "
                        f"was recorded ({method})."
                    ),
                    customer_link=f"/reservations/{reservation.id}",
                    staff_link="/admin/reservations",
                ),
            )
        else:
            outbox.emit(
                events.RESERVATION_PENDING_PAYMENT,
                reservation.id,
                await notices_for(
                    self.db,
                    reservation.hall,
                    customer,
                    customer_message=(
                        f"Your reservation {reservation.reservation_code} for {reservation.hall.name} "
                        f"is awaiting a deposit of {reservation.reservation_fee}."
                    ),
                    staff_message=(
                        f"New reservation {reservation.reservation_code} for {reservation.hall.name} "
                        "is awaiting deposit payment."
                    ),
                    customer_link=checkout.checkout_url if checkout else None,
                    staff_link="/admin/reservations",
                ),
            )
        await outbox.dispatch(self.sender)
        return ReservationCreated(reservation=reservation, checkout=checkout)

    async def _start_deposit_payment(
        self, reservation: Reservation, record: PaymentRecord, actor: User
    ) -> CheckoutSession:
        request = PaymentRequest(
            reference=record.reference,
            amount=record.amount,
            description=f"Reservation deposit {reservation.reservation_code}",
            redirect_url=callback_url("reservations/verify", record.reference),
            customer_name=reservation.walk_in_full_name or actor.full_name,
            customer_email=reservation.walk_in_email if reservation.is_walk_in else actor.email,
        )
        try:
            checkout = await self.gateway.initialize(request)
        except PaymentGatewayError:
            logger.warning(
                "Deposit checkout failed for %s; discarding the reservation", reservation.reservation_code
            )
            record.status = PaymentStatus.FAILED.value
            record.applied_at = self.clock()
            await self.db.delete(reservation)
            await self.db.commit()
            raise

        record.gateway_session_id = checkout.session_id
        record.checkout_url = checkout.checkout_url
        await self.db.commit()
        return checkout

    # ------------------------------------------------------------------
    # Deposit outcome
    # ------------------------------------------------------------------

    async def apply_deposit_outcome(self, record: PaymentRecord, result: VerificationResult) -> None:
        """Mark the deposit paid, or drop the reservation if payment failed."""
        reservation = await self.db.get(Reservation, record.target_id)
        if reservation is None:
            logger.warning("Deposit %s resolved for missing reservation %s", record.reference, record.target_id)
            if result.status == GatewayPaymentStatus.PAID:
                await self._report_orphaned_payment(record)
            return

        outbox = Outbox()
        hall = reservation.hall
        customer = await customer_of(self.db, reservation)

        if result.status == GatewayPaymentStatus.PAID:
            updated = await self.db.execute(
                update(Reservation)
                .where(
                    Reservation.id == reservation.id,
                    Reservation.status == ReservationStatus.ACTIVE.value,
                    Reservation.payment_status == PaymentStatus.PENDING.value,
                )
                .values(
                    payment_status=PaymentStatus.PAID.value,
                    transaction_reference=result.gateway_transaction_id,
                    updated_at=self.clock(),
                )
            )
            if updated.rowcount != 1:
                if reservation.payment_status == PaymentStatus.PAID.value:
                    logger.info("Deposit for %s already applied", reservation.reservation_code)
                else:
                    await self._report_orphaned_payment(record)
                return
            await self.db.commit()
            logger.info("Reservation %s deposit paid", reservation.reservation_code)
            outbox.emit(
                events.RESERVATION_CONFIRMED,
                reservation.id,
                await notices_for(
                    self.db,
                    hall,
                    customer,
                    customer_message=(
                        f"Your reservation {reservation.reservation_code} for {hall.name} is confirmed. "
                        f"Complete payment before {reservation.cutoff_date:%Y-%m-%d %H:%M} UTC."
                    ),
                    staff_message=f"Reservation {reservation.reservation_code} for {hall.name} was paid.",
                    customer_link=f"/reservations/{reservation.id}",
                    staff_link="/admin/reservations",
                ),
            )

        elif result.status == GatewayPaymentStatus.FAILED:
            if (
                reservation.status != ReservationStatus.ACTIVE.value
                or reservation.payment_status != PaymentStatus.PENDING.value
            ):
                logger.info("Ignoring failed deposit for %s (%s)", reservation.reservation_code, reservation.status)
                return
            outbox.emit(
                events.RESERVATION_PAYMENT_FAILED,
                reservation.id,
                await notices_for(
                    self.db,
                    hall,
                    customer,
                    customer_message=(
                        f"Payment for reservation {reservation.reservation_code} at {hall.name} failed. "
                        "The slot has been released."
                    ),
                    staff_message=(
                        f"Deposit for reservation {reservation.reservation_code} failed; the hold was released."
                    ),
                    staff_link="/admin/reservations",
                ),
            )
            await self.db.delete(reservation)
            await self.db.commit()
            logger.info("Reservation %s deleted after failed deposit", reservation.reservation_code)

        await outbox.dispatch(self.sender)

    # ------------------------------------------------------------------
    # Convert / finalize
    # ------------------------------------------------------------------

    async def convert(
        self,
        actor: User | None,
        reservation_id: uuid.UUID,
        payment_method: str | None = None,
    ) -> ConversionResult:
        """Settle the remaining balance and turn the reservation into a booking.

        Zero balances and offline settlement by hall staff finalize at
        once; anything else opens a gateway checkout for the balance.
        Converting after the cutoff expires the reservation, commits that,
        and raises ``ReservationExpired``.
        """
        if actor is None:
            raise NotAuthenticated("Authentication is required.")
        reservation = await self._get(reservation_id)
        manager = reservation.hall.is_managed_by(actor)
        if reservation.user_id != actor.id and not manager:
            raise Forbidden("You are not authorized to convert this reservation.")

        if reservation.status != ReservationStatus.ACTIVE.value:
            raise ReservationStateError(f"Reservation is {reservation.status} and cannot be converted.")
        if reservation.payment_status != PaymentStatus.PAID.value:
            raise ReservationStateError("The reservation deposit has not been paid.")

        now = self.clock()
        if now > reservation.cutoff_date:
            outbox = Outbox()
            await expire_reservation(self.db, reservation, now, outbox)
            await outbox.dispatch(self.sender)
            raise ReservationExpired("The reservation has expired and can no longer be converted.")

        balance = reservation.remaining_balance
        if balance <= 0:
            booking = await self.finalize(
                reservation, payment_method=reservation.payment_method, booked_by_id=actor.id
            )
            return ConversionResult(reservation=reservation, booking=booking)

        method = (payment_method or ONLINE).lower()
        if manager and method != ONLINE:
            if method not in await allowed_payment_methods(self.settings):
                raise ValidationFailed(f"Payment method {method!r} is not enabled.", field="payment_method")
            booking = await self.finalize(reservation, payment_method=method, booked_by_id=actor.id)
            return ConversionResult(reservation=reservation, booking=booking)

        checkout = await self._start_conversion_payment(reservation, actor)
        return ConversionResult(reservation=reservation, checkout=checkout)

    async def _start_conversion_payment(self, reservation: Reservation, actor: User) -> CheckoutSession:
        reference = mint_reference(PaymentPurpose.CONVERSION_BALANCE, reservation.id)
        record = register_payment(
            self.db,
            reference=reference,
            purpose=PaymentPurpose.CONVERSION_BALANCE,
            target_id=reservation.id,
            amount=reservation.remaining_balance,
            hall_id=reservation.hall_id,
        )
        await self.db.commit()

        customer = await customer_of(self.db, reservation)
        request = PaymentRequest(
            reference=reference,
            amount=record.amount,
            description=f"Balance for reservation {reservation.reservation_code}",
            redirect_url=callback_url("reservations/verify-conversion", reference),
            customer_name=customer.full_name if customer else actor.full_name,
            customer_email=customer.email if customer else actor.email,
        )
        try:
            checkout = await self.gateway.initialize(request)
        except PaymentGatewayError:
            logger.warning("Balance checkout failed for %s", reservation.reservation_code)
            record.status = PaymentStatus.FAILED.value
            record.applied_at = self.clock()
            await self.db.commit()
            raise

        record.gateway_session_id = checkout.session_id
        record.checkout_url = checkout.checkout_url
        await self.db.commit()
        logger.info("Balance checkout %s opened for %s", reference, reservation.reservation_code)
        return checkout

    async def finalize(
        self,
        reservation: Reservation,
        *,
        payment_method: str,
        booked_by_id: uuid.UUID | None = None,
        payment_reference: str | None = None,
        transaction_reference: str | None = None,
    ) -> Booking | None:
        """Create the booking and mark the reservation CONVERTED in one commit.

        Returns None without writing anything if the reservation is no
        longer ACTIVE. Any failure rolls both sides back.
        """
        now = self.clock()
        hall = reservation.hall
        try:
            moved = await self.db.execute(
                update(Reservation)
                .where(Reservation.id == reservation.id, Reservation.status == ReservationStatus.ACTIVE.value)
                .values(status=ReservationStatus.CONVERTED.value, updated_at=now)
            )
            if moved.rowcount != 1:
                logger.info("Reservation %s is no longer ACTIVE; not converting", reservation.reservation_code)
                return None

            booking = Booking(
                hall_id=reservation.hall_id,
                user_id=reservation.user_id,
                booked_by_id=booked_by_id or reservation.reserved_by_id,
                reservation_id=reservation.id,
                event_details=reservation.event_details,
                booking_type=reservation.reservation_type,
                walk_in_full_name=reservation.walk_in_full_name,
                walk_in_phone=reservation.walk_in_phone,
                walk_in_email=reservation.walk_in_email,
                total_price=reservation.total_price,
                hall_price=reservation.hall_price,
                facilities_price=reservation.facilities_price,
                selected_facilities=list(reservation.selected_facilities or []),
                payment_method=payment_method,
                payment_status=PaymentStatus.PAID.value,
                payment_reference=payment_reference,
                transaction_reference=transaction_reference,
                status=BookingStatus.CONFIRMED.value,
                slots=[BookingSlot(start_time=s.start_time, end_time=s.end_time) for s in reservation.slots],
            )

            async def _code() -> str:
                return await next_booking_code(self.db, hall.name, now)

            await insert_with_unique_code(self.db, booking, _code, attribute="booking_code")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Reservation %s -> CONVERTED as booking %s (%s)",
            reservation.reservation_code,
            booking.booking_code,
            payment_method,
        )
        outbox = Outbox()
        outbox.emit(
            events.BOOKING_CONFIRMED,
            booking.id,
            await notices_for(
                self.db,
                hall,
                await customer_of(self.db, reservation),
                customer_message=f"Your booking {booking.booking_code} for {hall.name} is confirmed.",
                staff_message=(
                    f"Reservation {reservation.reservation_code} was converted to booking "
                    f"{booking.booking_code} for {hall.name}."
                ),
                customer_link=f"/bookings/{booking.id}",
                staff_link="/admin/bookings",
            ),
        )
        await outbox.dispatch(self.sender)
        return booking

    async def _has_other_open_balance(self, record: PaymentRecord) -> bool:
        """True if another balance checkout for the same reservation is unresolved."""
        result = await self.db.execute(
            select(PaymentRecord.id)
            .where(
                PaymentRecord.purpose == PaymentPurpose.CONVERSION_BALANCE.value,
                PaymentRecord.target_id == record.target_id,
                PaymentRecord.id != record.id,
                PaymentRecord.applied_at.is_(None),
            )
            .limit(1)
        )
        return result.first() is not None

    async def apply_conversion_outcome(self, record: PaymentRecord, result: VerificationResult) -> None:
        """Finalize on a paid balance; mark CONVERSION_FAILED otherwise."""
        reservation = await self.db.get(Reservation, record.target_id)
        if reservation is None:
            logger.warning("Balance %s resolved for missing reservation %s", record.reference, record.target_id)
            if result.status == GatewayPaymentStatus.PAID:
                await self._report_orphaned_payment(record)
            return

        if reservation.status == ReservationStatus.CONVERTED.value:
            logger.info(
                "Reservation %s already converted; ignoring %s for %s",
                reservation.reservation_code,
                result.status.value,
                record.reference,
            )
            return

        if result.status == GatewayPaymentStatus.PAID:
            booking = await self.finalize(
                reservation,
                payment_method=ONLINE,
                payment_reference=record.reference,
                transaction_reference=result.gateway_transaction_id,
            )
            if booking is None:
                await self._report_orphaned_payment(record)
            return

        if result.status != GatewayPaymentStatus.FAILED:
            return

        if await self._has_other_open_balance(record):
            logger.info(
                "Balance %s failed but another checkout for %s is still open",
                record.reference,
                reservation.reservation_code,
            )
            return

        moved = await self.db.execute(
            update(Reservation)
            .where(Reservation.id == reservation.id, Reservation.status == ReservationStatus.ACTIVE.value)
            .values(status=ReservationStatus.CONVERSION_FAILED.value, updated_at=self.clock())
        )
        if moved.rowcount != 1:
            logger.info("Ignoring failed balance for %s (%s)", reservation.reservation_code, reservation.status)
            return
        await self.db.commit()
        logger.info("Reservation %s -> CONVERSION_FAILED", reservation.reservation_code)

        hall = reservation.hall
        outbox = Outbox()
        outbox.emit(
            events.CONVERSION_FAILED,
            reservation.id,
            await notices_for(
                self.db,
                hall,
                await customer_of(self.db, reservation),
                customer_message=(
                    f"Payment of the balance for reservation {reservation.reservation_code} at {hall.name} "
                    "failed. Please contact the hall to arrange settlement."
                ),
                staff_message=(
                    f"Balance payment for reservation {reservation.reservation_code} failed; "
                    "the deposit is retained."
                ),
                customer_link=f"/reservations/{reservation.id}",
                staff_link="/admin/reservations",
            ),
        )
        await outbox.dispatch(self.sender)

    async def _report_orphaned_payment(self, record: PaymentRecord) -> None:
        await report_orphaned_payment(self.db, self.sender, record, "reservation that is no longer active")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _get(self, reservation_id: uuid.UUID) -> Reservation:
        reservation = await self.db.get(Reservation, reservation_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        return reservation

    async def get_for_actor(self, actor: User, reservation_id: uuid.UUID) -> Reservation:
        """Reservation detail for its holder, the hall's managers, or an admin."""
        reservation = await self._get(reservation_id)
        if reservation.user_id != actor.id and not reservation.hall.is_managed_by(actor):
            raise Forbidden("You are not authorized to view this reservation.")
        return reservation

    async def list_reservations(
        self,
        filters: ListFilters,
        *,
        hall_id: uuid.UUID | None = None,
        user_id: uuid.UUID | None = None,
    ) -> tuple[list[Reservation], int]:
        conditions = []
        if hall_id is not None:
            conditions.append(Reservation.hall_id == hall_id)
        if user_id is not None:
            conditions.append(Reservation.user_id == user_id)
        if filters.status:
            value = filters.status.upper()
            if value not in {s.value for s in ReservationStatus}:
                raise ValidationFailed(f"Unknown reservation status {filters.status!r}.", field="status")
            conditions.append(Reservation.status == value)
        if filters.payment_status:
            value = filters.payment_status.lower()
            if value not in {s.value for s in PaymentStatus}:
                raise ValidationFailed(f"Unknown payment status {filters.payment_status!r}.", field="payment_status")
            conditions.append(Reservation.payment_status == value)
        return await paginate(self.db, Reservation, conditions, filters)

    async def list_for_hall(
        self, actor: User, hall_id: uuid.UUID, filters: ListFilters
    ) -> tuple[list[Reservation], int]:
        hall = await self.db.get(Hall, hall_id)
        if hall is None:
            raise NotFound("Hall not found")
        if not hall.is_managed_by(actor):
            raise Forbidden("You are not authorized to view reservations for this hall.")
        return await self.list_reservations(filters, hall_id=hall_id)

    async def list_for_user(
        self, actor: User, user_id: uuid.UUID, filters: ListFilters
    ) -> tuple[list[Reservation], int]:
        if actor.id != user_id and not actor.is_super_admin:
            raise Forbidden("Only platform admins can view another user's reservations.")
        return await self.list_reservations(filters, user_id=user_id)
