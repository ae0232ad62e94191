"""Runtime platform settings behind an injectable provider.

Services never read the ``platform_settings`` table directly; they receive
a :class:`SettingsProvider` so tests can pin configuration.
"""

import logging
from datetime import timedelta
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.config import settings
from venuebook.models.setting import PlatformSetting

logger = logging.getLogger(__name__)

PAYMENT_METHODS = "paymentMethods"
PENDING_DEPOSIT_EXPIRY_MINUTES = "pendingReservationExpiryMinutes"
PENDING_BOOKING_EXPIRY_MINUTES = "pendingBookingDeletionTime"

DEFAULTS: dict[str, Any] = {
    PAYMENT_METHODS: settings.default_payment_methods,
    PENDING_DEPOSIT_EXPIRY_MINUTES: settings.pending_deposit_expiry_minutes,
    PENDING_BOOKING_EXPIRY_MINUTES: settings.pending_booking_expiry_minutes,
}


class SettingsProvider(Protocol):
    async def get(self, key: str, default: Any = None) -> Any: ...


class DatabaseSettingsProvider:
    """Reads settings rows, caching values for the lifetime of the provider."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._cache: dict[str, Any] = {}

    async def get(self, key: str, default: Any = None) -> Any:
        if key not in self._cache:
            result = await self._db.execute(select(PlatformSetting.value).where(PlatformSetting.key == key))
            row = result.first()
            self._cache[key] = row[0] if row is not None else None
        value = self._cache[key]
        if value is None:
            return DEFAULTS.get(key, default) if default is None else default
        return value


class StaticSettingsProvider:
    """Fixed in-memory settings."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    async def get(self, key: str, default: Any = None) -> Any:
        if key in self._values:
            return self._values[key]
        return DEFAULTS.get(key, default) if default is None else default


async def allowed_payment_methods(provider: SettingsProvider) -> list[str]:
    methods = await provider.get(PAYMENT_METHODS)
    if isinstance(methods, str):
        methods = [part.strip() for part in methods.split(",") if part.strip()]
    return list(methods or [])


async def _minutes(provider: SettingsProvider, key: str, fallback: int) -> timedelta:
    minutes = await provider.get(key)
    try:
        return timedelta(minutes=float(minutes))
    except (TypeError, ValueError):
        logger.warning("Invalid %s setting %r, using default", key, minutes)
        return timedelta(minutes=fallback)


async def pending_deposit_hold(provider: SettingsProvider) -> timedelta:
    return await _minutes(provider, PENDING_DEPOSIT_EXPIRY_MINUTES, settings.pending_deposit_expiry_minutes)


async def pending_booking_hold(provider: SettingsProvider) -> timedelta:
    """How long an unpaid pay-first booking may hold its slot."""
    return await _minutes(provider, PENDING_BOOKING_EXPIRY_MINUTES, settings.pending_booking_expiry_minutes)
