"""Customer identity and notification audiences."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.models.booking import Booking
from venuebook.models.hall import Hall
from venuebook.models.reservation import Reservation
from venuebook.models.user import ROLE_SUPER_ADMIN, User


@dataclass(frozen=True)
class RegisteredCustomer:
    user_id: uuid.UUID
    full_name: str
    email: str

    @property
    def recipient_id(self) -> uuid.UUID:
        return self.user_id


@dataclass(frozen=True)
class WalkInCustomer:
    full_name: str
    phone: str
    email: str | None = None

    @property
    def recipient_id(self) -> None:
        return None


Customer = RegisteredCustomer | WalkInCustomer


@dataclass(frozen=True)
class Recipient:
    user_id: uuid.UUID | None
    email: str | None
    full_name: str


def recipient_for_customer(customer: Customer) -> Recipient:
    return Recipient(user_id=customer.recipient_id, email=customer.email, full_name=customer.full_name)


def recipient_for_user(user: User) -> Recipient:
    return Recipient(user_id=user.id, email=user.email, full_name=user.full_name)


async def customer_of(db: AsyncSession, record: Reservation | Booking) -> Customer | None:
    """Resolve the customer behind a reservation or booking."""
    if record.walk_in_full_name and record.walk_in_phone and record.user_id is None:
        return WalkInCustomer(
            full_name=record.walk_in_full_name,
            phone=record.walk_in_phone,
            email=record.walk_in_email,
        )
    if record.user_id is None:
        return None
    user = await db.get(User, record.user_id)
    if user is None:
        return None
    return RegisteredCustomer(user_id=user.id, full_name=user.full_name, email=user.email)


async def platform_admins(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User).where(User.role == ROLE_SUPER_ADMIN, User.is_active.is_(True))
    )
    return list(result.scalars().all())


async def hall_audience(db: AsyncSession, hall: Hall) -> list[Recipient]:
    """Hall owner plus platform admins, without duplicates."""
    recipients: list[Recipient] = []
    seen: set[uuid.UUID] = set()
    for user in [hall.owner, *await platform_admins(db)]:
        if user is None or user.id in seen:
            continue
        seen.add(user.id)
        recipients.append(recipient_for_user(user))
    return recipients


async def notices_for(
    db: AsyncSession,
    hall: Hall | None,
    customer: Customer | None,
    *,
    customer_message: str | None,
    staff_message: str,
    customer_link: str | None = None,
    staff_link: str | None = None,
) -> list[tuple[Recipient, str, str | None]]:
    """Pair the customer and the hall audience with their messages."""
    notices: list[tuple[Recipient, str, str | None]] = []
    if customer is not None and customer_message:
        notices.append((recipient_for_customer(customer), customer_message, customer_link))
    if hall is not None:
        audience = await hall_audience(db, hall)
    else:
        audience = [recipient_for_user(user) for user in await platform_admins(db)]
    customer_id = customer.recipient_id if customer is not None else None
    for recipient in audience:
        if customer_id is not None and recipient.user_id == customer_id:
            continue
        notices.append((recipient, staff_message, staff_link))
    return notices
