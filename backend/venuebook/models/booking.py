"""Booking model — a confirmed occupancy of a hall slot."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venuebook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from venuebook.models.hall import Hall


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A booking created directly (pay-first) or by converting a reservation."""

    __tablename__ = "bookings"

    booking_code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, index=True)
    hall_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    booked_by_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    # UNIQUE: a reservation converts into at most one booking
    reservation_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("reservations.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    recurring_booking_id: Mapped[str | None] = mapped_column(String(64), default=None, index=True)
    event_details: Mapped[str] = mapped_column(Text, nullable=False)
    booking_type: Mapped[str] = mapped_column(String(20), default="online", nullable=False)  # online, walk-in

    walk_in_full_name: Mapped[str | None] = mapped_column(String(255), default=None)
    walk_in_phone: Mapped[str | None] = mapped_column(String(50), default=None)
    walk_in_email: Mapped[str | None] = mapped_column(String(255), default=None)

    # Price snapshot
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    hall_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    facilities_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selected_facilities: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Payment
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)  # cash, pos, bank-transfer, online
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)  # pending, paid, failed
    payment_reference: Mapped[str | None] = mapped_column(String(120), unique=True, nullable=True)
    transaction_reference: Mapped[str | None] = mapped_column(String(255), default=None)

    status: Mapped[str] = mapped_column(String(20), default=BookingStatus.CONFIRMED.value, nullable=False, index=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(default=None)

    # Relationships
    hall: Mapped[Hall] = relationship(lazy="selectin")
    slots: Mapped[list["BookingSlot"]] = relationship(
        back_populates="booking",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="BookingSlot.start_time",
    )

    @property
    def is_walk_in(self) -> bool:
        return self.booking_type == "walk-in"

    def __repr__(self) -> str:
        return f"<Booking(code={self.booking_code!r}, status={self.status}, payment={self.payment_status})>"


class BookingSlot(UUIDPrimaryKeyMixin, Base):
    """One ``[start_time, end_time)`` range occupied by a booking."""

    __tablename__ = "booking_slots"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)

    booking: Mapped[Booking] = relationship(back_populates="slots")

    __table_args__ = (Index("ix_booking_slots_range", "start_time", "end_time"),)
