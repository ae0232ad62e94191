"""Hall and facility models — the read model for pricing and slot rules.

The reservation lifecycle only reads these rows (rates, buffer hours,
deposit percentage, cutoff hours, facility catalogue); it never mutates them.
"""

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from venuebook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from venuebook.models.user import User

hall_staff = Table(
    "hall_staff",
    Base.metadata,
    Column("hall_id", ForeignKey("halls.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Hall(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A bookable hall owned by a hall owner, optionally with assigned staff."""

    __tablename__ = "halls"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    capacity: Mapped[int | None] = mapped_column(Integer, default=None)

    # Pricing rules
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), default=None)
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), default=None)

    # Slot and deposit rules
    booking_buffer_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    reservation_fee_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    reservation_cutoff_hours: Mapped[int] = mapped_column(Integer, default=72, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    owner: Mapped[User] = relationship(lazy="selectin")
    staff: Mapped[list[User]] = relationship(secondary=hall_staff, lazy="selectin")
    facilities: Mapped[list["HallFacility"]] = relationship(
        back_populates="hall", lazy="selectin", cascade="all, delete-orphan"
    )

    def is_managed_by(self, user: User | None) -> bool:
        """Return True if ``user`` may act for this hall with an elevated role."""
        if user is None or not user.is_elevated:
            return False
        if user.is_super_admin:
            return True
        if user.id == self.owner_id:
            return True
        return any(member.id == user.id for member in self.staff)

    def __repr__(self) -> str:
        return f"<Hall(id={self.id}, name={self.name!r})>"


class HallFacility(UUIDPrimaryKeyMixin, Base):
    """A facility offered with a hall (chairs, projector, generator...)."""

    __tablename__ = "hall_facilities"

    hall_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    chargeable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    charge_method: Mapped[str] = mapped_column(String(20), default="free", nullable=False)  # free, flat, per_hour, per_day
    cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    charge_per_unit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    hall: Mapped[Hall] = relationship(back_populates="facilities")

    def __repr__(self) -> str:
        return f"<HallFacility(id={self.id}, name={self.name!r}, method={self.charge_method!r})>"
