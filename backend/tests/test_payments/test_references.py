"""Tests for payment correlation references."""

import uuid

import pytest

from venuebook.errors import ValidationFailed
from venuebook.models.payment import PaymentPurpose
from venuebook.payments.references import callback_url, mint_reference, parse_reference


class TestMintAndParse:
    @pytest.mark.parametrize(
        ("purpose", "prefix"),
        [
            (PaymentPurpose.RESERVATION_DEPOSIT, "RES_"),
            (PaymentPurpose.CONVERSION_BALANCE, "CONV_"),
            (PaymentPurpose.BOOKING_PAYMENT, "BKG_"),
        ],
    )
    def test_prefix_routes_purpose(self, purpose, prefix):
        target_id = uuid.uuid4()
        reference = mint_reference(purpose, target_id)

        assert reference.startswith(prefix)
        parsed = parse_reference(reference)
        assert parsed.purpose == purpose
        assert parsed.target_id == target_id

    def test_references_are_unique_per_attempt(self):
        target_id = uuid.uuid4()
        assert mint_reference(PaymentPurpose.CONVERSION_BALANCE, target_id) != mint_reference(
            PaymentPurpose.CONVERSION_BALANCE, target_id
        )

    @pytest.mark.parametrize(
        "reference",
        ["", "RES", "RES_abc", f"XYZ_{uuid.uuid4().hex}_abc", "RES_not-a-uuid_abc", f"RES_{uuid.uuid4().hex}_"],
    )
    def test_malformed(self, reference):
        with pytest.raises(ValidationFailed) as exc_info:
            parse_reference(reference)
        assert exc_info.value.field == "paymentReference"


def test_callback_url():
    assert callback_url("bookings/verify", "BKG_x_y") == (
        "http://localhost:8000/api/v1/bookings/verify?paymentReference=BKG_x_y"
    )
