"""Tests for runtime platform settings providers."""

from datetime import timedelta

import pytest

from venuebook.models.setting import PlatformSetting
from venuebook.services.platform_settings import (
    PAYMENT_METHODS,
    PENDING_BOOKING_EXPIRY_MINUTES,
    PENDING_DEPOSIT_EXPIRY_MINUTES,
    DatabaseSettingsProvider,
    StaticSettingsProvider,
    allowed_payment_methods,
    pending_booking_hold,
    pending_deposit_hold,
)

pytestmark = pytest.mark.asyncio


async def test_database_provider_falls_back_to_defaults(db_session):
    provider = DatabaseSettingsProvider(db_session)
    assert "online" in await allowed_payment_methods(provider)
    assert await pending_deposit_hold(provider) == timedelta(minutes=30)


async def test_database_provider_reads_rows(db_session):
    db_session.add(PlatformSetting(key=PAYMENT_METHODS, value="cash, pos"))
    db_session.add(PlatformSetting(key=PENDING_DEPOSIT_EXPIRY_MINUTES, value=15))
    await db_session.commit()

    provider = DatabaseSettingsProvider(db_session)
    assert await allowed_payment_methods(provider) == ["cash", "pos"]
    assert await pending_deposit_hold(provider) == timedelta(minutes=15)


async def test_invalid_hold_uses_default():
    provider = StaticSettingsProvider({PENDING_DEPOSIT_EXPIRY_MINUTES: "soon"})
    assert await pending_deposit_hold(provider) == timedelta(minutes=30)


async def test_static_provider_explicit_default():
    provider = StaticSettingsProvider()
    assert await provider.get("unknownKey", "fallback") == "fallback"


async def test_booking_hold_is_separate_from_deposit_hold():
    provider = StaticSettingsProvider({PENDING_BOOKING_EXPIRY_MINUTES: 45})
    assert await pending_booking_hold(provider) == timedelta(minutes=45)
    assert await pending_deposit_hold(provider) == timedelta(minutes=30)
