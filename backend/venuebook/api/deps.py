"""Shared API dependencies — single import point for all routers.

Collaborators (payment gateway, notification sender, settings provider,
clock) are resolved here so tests can swap them through
``app.dependency_overrides``::

    from venuebook.api.deps import get_db, get_current_active_user
"""

from collections.abc import Callable
from datetime import datetime

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.auth.dependencies import (
    get_current_active_user,
    get_current_user,
    get_elevated_user,
)
from venuebook.database import get_db, utcnow
from venuebook.models.payment import PaymentPurpose
from venuebook.notifications.sender import NotificationSender, QueueNotificationSender
from venuebook.payments.correlation import PaymentCorrelator
from venuebook.payments.gateway import PaymentGateway, StripeGateway
from venuebook.services.booking_service import BookingService
from venuebook.services.platform_settings import DatabaseSettingsProvider, SettingsProvider
from venuebook.services.reservation_service import ReservationService


def get_payment_gateway() -> PaymentGateway:
    return StripeGateway()


def get_notification_sender() -> NotificationSender:
    return QueueNotificationSender()


async def get_settings_provider(db: AsyncSession = Depends(get_db)) -> SettingsProvider:
    return DatabaseSettingsProvider(db)


def get_clock() -> Callable[[], datetime]:
    return utcnow


async def get_reservation_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    sender: NotificationSender = Depends(get_notification_sender),
    settings_provider: SettingsProvider = Depends(get_settings_provider),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReservationService:
    return ReservationService(
        db, gateway=gateway, sender=sender, settings_provider=settings_provider, clock=clock
    )


async def get_booking_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    sender: NotificationSender = Depends(get_notification_sender),
    settings_provider: SettingsProvider = Depends(get_settings_provider),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingService:
    return BookingService(
        db, gateway=gateway, sender=sender, settings_provider=settings_provider, clock=clock
    )


async def get_payment_correlator(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    reservations: ReservationService = Depends(get_reservation_service),
    bookings: BookingService = Depends(get_booking_service),
) -> PaymentCorrelator:
    """Correlator routing each payment purpose to its state-machine action."""
    return PaymentCorrelator(
        db,
        gateway,
        handlers={
            PaymentPurpose.RESERVATION_DEPOSIT: reservations.apply_deposit_outcome,
            PaymentPurpose.CONVERSION_BALANCE: reservations.apply_conversion_outcome,
            PaymentPurpose.BOOKING_PAYMENT: bookings.apply_payment_outcome,
        },
    )


__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_elevated_user",
    "get_payment_gateway",
    "get_notification_sender",
    "get_settings_provider",
    "get_clock",
    "get_reservation_service",
    "get_booking_service",
    "get_payment_correlator",
]
