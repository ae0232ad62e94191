"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

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


class BookingCreate(BaseModel):
    """Pay-first booking by a registered customer."""

    hall_id: uuid.UUID
    booking_dates: list[DateRange]
    event_details: str
    selected_facilities: list[FacilitySelection] = Field(default_factory=list)


class WalkInBookingCreate(BookingCreate):
    """Booking recorded by hall staff and settled offline."""

    walk_in_customer: WalkInCustomer
    payment_method: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    id: uuid.UUID
    booking_code: str
    hall_id: uuid.UUID
    user_id: uuid.UUID | None = None
    booked_by_id: uuid.UUID | None = None
    reservation_id: uuid.UUID | None = None
    event_details: str
    booking_type: str
    walk_in_full_name: str | None = None
    walk_in_phone: str | None = None
    walk_in_email: str | None = None
    total_price: Decimal
    hall_price: Decimal
    facilities_price: Decimal
    selected_facilities: list[dict] = Field(default_factory=list)
    payment_method: str
    payment_status: str
    payment_reference: str | None = None
    status: str
    cancelled_at: datetime | None = None
    slots: list[SlotResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingCreateResponse(BaseModel):
    booking: BookingResponse
    checkout: CheckoutResponse | None = None


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: list[BookingResponse]
    total: int
