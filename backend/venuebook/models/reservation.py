"""Reservation model — a deposit-backed, time-boxed hold on a hall slot."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venuebook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from venuebook.models.hall import Hall


class ReservationStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CONVERTED = "CONVERTED"
    EXPIRED = "EXPIRED"
    CONVERSION_FAILED = "CONVERSION_FAILED"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Reservation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A hold on one or more hall time ranges pending full payment."""

    __tablename__ = "reservations"

    reservation_code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, index=True)
    hall_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )  # null for walk-in
    reserved_by_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    reservation_type: Mapped[str] = mapped_column(String(20), default="online", nullable=False)  # online, walk-in
    event_details: Mapped[str] = mapped_column(Text, nullable=False)

    # Walk-in customer identity
    walk_in_full_name: Mapped[str | None] = mapped_column(String(255), default=None)
    walk_in_phone: Mapped[str | None] = mapped_column(String(50), default=None)
    walk_in_email: Mapped[str | None] = mapped_column(String(255), default=None)

    # Price snapshot at creation time
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    hall_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    facilities_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reservation_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selected_facilities: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Deposit payment
    payment_reference: Mapped[str | None] = mapped_column(String(120), unique=True, nullable=True)
    transaction_reference: Mapped[str | None] = mapped_column(String(255), default=None)
    payment_method: Mapped[str] = mapped_column(String(30), default="online", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value, nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(30), default=ReservationStatus.ACTIVE.value, nullable=False, index=True)
    cutoff_date: Mapped[datetime] = mapped_column(nullable=False, index=True)
    reminders_sent: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Relationships
    hall: Mapped[Hall] = relationship(lazy="selectin")
    slots: Mapped[list["ReservationSlot"]] = relationship(
        back_populates="reservation",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="ReservationSlot.start_time",
    )

    @property
    def is_walk_in(self) -> bool:
        return self.reservation_type == "walk-in"

    @property
    def remaining_balance(self) -> Decimal:
        return self.total_price - self.reservation_fee

    def reminded_for(self, window: str) -> bool:
        return any(entry.get("window") == window for entry in self.reminders_sent or [])

    def __repr__(self) -> str:
        return f"<Reservation(code={self.reservation_code!r}, status={self.status}, payment={self.payment_status})>"


class ReservationSlot(UUIDPrimaryKeyMixin, Base):
    """One ``[start_time, end_time)`` range held by a reservation."""

    __tablename__ = "reservation_slots"

    reservation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)

    reservation: Mapped[Reservation] = relationship(back_populates="slots")

    __table_args__ = (Index("ix_reservation_slots_range", "start_time", "end_time"),)
