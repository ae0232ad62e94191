"""Tests for reservation/booking code generation and collision retry."""

import re
import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from venuebook.errors import CodeAllocationError
from venuebook.models.booking import Booking
from venuebook.services.codes import hall_prefix, insert_with_unique_code, new_reservation_code, next_booking_code
from venuebook.services.locks import HallLocks


def _booking(hall_id, **overrides) -> Booking:
    values = {
        "hall_id": hall_id,
        "event_details": "Code test",
        "total_price": Decimal("100"),
        "hall_price": Decimal("100"),
        "facilities_price": Decimal("0"),
        "selected_facilities": [],
        "payment_method": "cash",
        "payment_status": "paid",
        "status": "confirmed",
    }
    values.update(overrides)
    return Booking(**values)


class TestFormats:
    def test_hall_prefix(self):
        assert hall_prefix("Grand Hall") == "GRA"
        assert hall_prefix("O'Neil Centre") == "ONE"
        assert hall_prefix("A1") == "A1X"
        assert hall_prefix("!!!") == "HAL"

    def test_reservation_code(self):
        code = new_reservation_code("Grand Hall", datetime(2030, 3, 9, 12))
        assert re.fullmatch(r"RSV-GRA-300309-[0-9A-F]{6}", code)

    async def test_next_booking_code_serial(self, db_session, hall):
        now = datetime(2030, 3, 9, 12)
        assert await next_booking_code(db_session, "Grand Hall", now) == "GRA-09-03-30-001"

        db_session.add(_booking(hall.id, booking_code="GRA-09-03-30-007"))
        await db_session.commit()
        assert await next_booking_code(db_session, "Grand Hall", now) == "GRA-09-03-30-008"


class TestInsertWithUniqueCode:
    async def test_retries_after_collision(self, db_session, hall):
        db_session.add(_booking(hall.id, booking_code="TAKEN"))
        await db_session.commit()
        codes = iter(["TAKEN", "FREE"])

        async def assign() -> str:
            return next(codes)

        booking = _booking(hall.id)
        code = await insert_with_unique_code(
            db_session, booking, assign, attribute="booking_code", max_attempts=5, retry_delay=0
        )

        assert code == "FREE"
        assert booking.booking_code == "FREE"

    async def test_gives_up_after_max_attempts(self, db_session, hall):
        db_session.add(_booking(hall.id, booking_code="TAKEN"))
        await db_session.commit()
        attempts = []

        async def assign() -> str:
            attempts.append(1)
            return "TAKEN"

        with pytest.raises(CodeAllocationError):
            await insert_with_unique_code(
                db_session, _booking(hall.id), assign, attribute="booking_code", max_attempts=3, retry_delay=0
            )
        assert len(attempts) == 3


class TestHallLocks:
    def test_same_hall_same_lock(self):
        locks = HallLocks()
        hall_id = uuid.uuid4()
        lock = locks.for_hall(hall_id)
        assert locks.for_hall(hall_id) is lock
        assert locks.for_hall(uuid.uuid4()) is not lock
