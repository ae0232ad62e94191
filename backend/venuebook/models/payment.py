"""Payment record model — reference → target mapping for gateway transactions."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class PaymentPurpose(str, enum.Enum):
    RESERVATION_DEPOSIT = "reservation_deposit"
    CONVERSION_BALANCE = "conversion_balance"
    BOOKING_PAYMENT = "booking_payment"


class PaymentRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One gateway transaction minted by the platform.

    ``applied_at`` is set exactly once, by whichever delivery of the outcome
    (redirect verification or webhook) wins the guarded update.
    """

    __tablename__ = "payment_records"

    reference: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    purpose: Mapped[str] = mapped_column(String(40), nullable=False)
    target_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    hall_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("halls.id", ondelete="SET NULL"), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False)

    gateway_session_id: Mapped[str | None] = mapped_column(String(255), default=None, index=True)
    checkout_url: Mapped[str | None] = mapped_column(String(2048), default=None)

    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)  # pending, paid, failed
    gateway_transaction_id: Mapped[str | None] = mapped_column(String(255), default=None)
    applied_at: Mapped[datetime | None] = mapped_column(default=None)

    def __repr__(self) -> str:
        return f"<PaymentRecord(reference={self.reference!r}, purpose={self.purpose}, status={self.status})>"
