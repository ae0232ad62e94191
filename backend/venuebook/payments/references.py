"""Payment correlation references.

A reference is ``<PREFIX>_<target uuid hex>_<random suffix>``. The prefix
names what the payment is for, so an incoming gateway callback can be
routed without consulting anything but the string itself.
"""

import secrets
import uuid
from dataclasses import dataclass

from venuebook.config import settings
from venuebook.errors import ValidationFailed
from venuebook.models.payment import PaymentPurpose

PREFIXES: dict[PaymentPurpose, str] = {
    PaymentPurpose.RESERVATION_DEPOSIT: "RES",
    PaymentPurpose.CONVERSION_BALANCE: "CONV",
    PaymentPurpose.BOOKING_PAYMENT: "BKG",
}
PURPOSES: dict[str, PaymentPurpose] = {prefix: purpose for purpose, prefix in PREFIXES.items()}


@dataclass(frozen=True)
class ParsedReference:
    purpose: PaymentPurpose
    target_id: uuid.UUID
    suffix: str


def mint_reference(purpose: PaymentPurpose, target_id: uuid.UUID) -> str:
    return f"{PREFIXES[purpose]}_{target_id.hex}_{secrets.token_hex(6)}"


def parse_reference(reference: str) -> ParsedReference:
    """Split ``reference`` into purpose and target id.

    Raises ``ValidationFailed`` for unknown prefixes or malformed ids.
    """
    parts = (reference or "").split("_")
    if len(parts) != 3 or not parts[2]:
        raise ValidationFailed("Malformed payment reference.", field="paymentReference")

    prefix, target_hex, suffix = parts
    purpose = PURPOSES.get(prefix)
    if purpose is None:
        raise ValidationFailed(f"Unknown payment reference prefix {prefix!r}.", field="paymentReference")
    try:
        target_id = uuid.UUID(hex=target_hex)
    except ValueError as e:
        raise ValidationFailed("Malformed payment reference.", field="paymentReference") from e
    return ParsedReference(purpose=purpose, target_id=target_id, suffix=suffix)


def callback_url(route: str, reference: str) -> str:
    """Gateway redirect target that verifies ``reference`` on return."""
    return f"{settings.base_url}/api/v1/{route}?paymentReference={reference}"
