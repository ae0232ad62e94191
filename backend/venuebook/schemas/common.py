"""Schemas shared by reservation and booking endpoints."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class DateRange(BaseModel):
    """A requested ``[start_time, end_time)`` range.

    Aware datetimes are converted to naive UTC; naive ones are taken as UTC.
    """

    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def to_naive_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class FacilitySelection(BaseModel):
    facility_id: uuid.UUID
    quantity: int = 1


class WalkInCustomer(BaseModel):
    """Identity of a customer without an account."""

    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=3, max_length=50)
    email: EmailStr | None = None


class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutResponse(BaseModel):
    """Where to send the customer to pay."""

    reference: str
    session_id: str
    checkout_url: str | None = None

    model_config = ConfigDict(from_attributes=True)
