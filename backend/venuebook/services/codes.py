"""Human-readable reservation and booking codes.

Codes are backed by unique indexes. Inserts run in a SAVEPOINT so that a
uniqueness violation can be retried with a fresh code without abandoning
the surrounding transaction.
"""

import asyncio
import logging
import re
import secrets
from collections.abc import Awaitable, Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.config import settings
from venuebook.errors import CodeAllocationError
from venuebook.models.booking import Booking

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def hall_prefix(hall_name: str) -> str:
    """First three alphanumeric characters of the hall name, upper-cased."""
    cleaned = _NON_ALNUM.sub("", hall_name).upper()
    return (cleaned[:3] or "HAL").ljust(3, "X")


def new_reservation_code(hall_name: str, now: datetime) -> str:
    return f"RSV-{hall_prefix(hall_name)}-{now:%y%m%d}-{secrets.token_hex(3).upper()}"


async def next_booking_code(db: AsyncSession, hall_name: str, now: datetime) -> str:
    """``<HALL>-<DD>-<MM>-<YY>-<serial>`` with the next serial for the day."""
    prefix = f"{hall_prefix(hall_name)}-{now:%d-%m-%y}-"
    result = await db.execute(
        select(Booking.booking_code)
        .where(Booking.booking_code.like(f"{prefix}%"))
        .order_by(Booking.booking_code.desc())
        .limit(1)
    )
    last = result.scalar_one_or_none()
    serial = 1
    if last is not None:
        try:
            serial = int(last.rsplit("-", 1)[-1]) + 1
        except ValueError:
            serial = 1
    return f"{prefix}{serial:03d}"


async def insert_with_unique_code(
    db: AsyncSession,
    instance: object,
    assign_code: Callable[[], Awaitable[str]],
    *,
    attribute: str,
    max_attempts: int | None = None,
    retry_delay: float | None = None,
) -> str:
    """Assign a code and insert ``instance``, retrying on unique violations.

    Raises ``CodeAllocationError`` once ``max_attempts`` inserts have failed.
    """
    attempts = max_attempts or settings.reservation_code_max_attempts
    delay = settings.reservation_code_retry_delay_seconds if retry_delay is None else retry_delay

    for attempt in range(1, attempts + 1):
        code = await assign_code()
        setattr(instance, attribute, code)
        try:
            async with db.begin_nested():
                db.add(instance)
                await db.flush()
            return code
        except IntegrityError:
            logger.warning(
                "Code collision on %s=%s (attempt %d/%d)", attribute, code, attempt, attempts
            )
            if attempt < attempts:
                await asyncio.sleep(delay * attempt)

    raise CodeAllocationError(f"Could not allocate a unique {attribute} after {attempts} attempts.")
