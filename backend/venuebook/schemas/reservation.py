"""Pydantic v2 request/response schemas for reservation endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from venuebook.schemas.booking import BookingResponse
from venuebook.schemas.common import (
    CheckoutResponse,
    DateRange,
    FacilitySelection,
    SlotResponse,
    WalkInCustomer,
)

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ReservationCreate(BaseModel):
    """Reserve a hall with a deposit.

    ``walk_in_customer`` is only accepted from hall staff, who may also
    choose an offline ``payment_method``.
    """

    hall_id: uuid.UUID
    booking_dates: list[DateRange]
    event_details: str
    selected_facilities: list[FacilitySelection] = Field(default_factory=list)
    walk_in_customer: WalkInCustomer | None = None
    payment_method: str = "online"


class ConvertRequest(BaseModel):
    payment_method: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ReservationResponse(BaseModel):
    id: uuid.UUID
    reservation_code: str
    hall_id: uuid.UUID
    user_id: uuid.UUID | None = None
    reserved_by_id: uuid.UUID
    reservation_type: str
    event_details: str
    walk_in_full_name: str | None = None
    walk_in_phone: str | None = None
    walk_in_email: str | None = None
    total_price: Decimal
    hall_price: Decimal
    facilities_price: Decimal
    reservation_fee: Decimal
    remaining_balance: Decimal
    selected_facilities: list[dict] = Field(default_factory=list)
    payment_reference: str | None = None
    payment_method: str
    payment_status: str
    status: str
    cutoff_date: datetime
    reminders_sent: list[dict] = Field(default_factory=list)
    slots: list[SlotResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationCreateResponse(BaseModel):
    """Created reservation plus what is owed now."""

    reservation: ReservationResponse
    deposit_due: Decimal
    checkout: CheckoutResponse | None = None


class ConvertResponse(BaseModel):
    """Either ``booking`` (finalized) or ``checkout`` (balance due online)."""

    reservation: ReservationResponse
    booking: BookingResponse | None = None
    checkout: CheckoutResponse | None = None


class ReservationListResponse(BaseModel):
    """Paginated list of reservations."""

    items: list[ReservationResponse]
    total: int
