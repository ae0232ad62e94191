"""Price and deposit calculation for hall slots.

Pure functions over a hall snapshot: nothing here touches the database.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from venuebook.errors import NotFound, ValidationFailed
from venuebook.models.hall import Hall, HallFacility
from venuebook.services.conflicts import TimeRange

CENT = Decimal("0.01")
MIN_DURATION_HOURS = Decimal("0.5")
MAX_DURATION_HOURS = Decimal(7 * 24)


def money(value: Decimal | int | float) -> Decimal:
    """Round to two decimal places, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class FacilityRequest:
    facility_id: uuid.UUID
    quantity: int = 1


@dataclass
class FacilityCost:
    facility_id: uuid.UUID
    name: str
    cost: Decimal
    charge_method: str
    quantity: int

    def to_dict(self) -> dict:
        return {
            "facility_id": str(self.facility_id),
            "name": self.name,
            "cost": str(money(self.cost)),
            "charge_method": self.charge_method,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class PriceQuote:
    total_price: Decimal
    hall_price: Decimal
    facilities_price: Decimal
    reservation_fee: Decimal
    facilities: list[FacilityCost] = field(default_factory=list)

    @property
    def facilities_snapshot(self) -> list[dict]:
        return [item.to_dict() for item in self.facilities]


def hall_price_for(hours: Decimal, hourly_rate: Decimal | None, daily_rate: Decimal | None) -> Decimal:
    """Price one range of ``hours`` using the hall's rate rules."""
    if hours < MIN_DURATION_HOURS:
        raise ValidationFailed("Booking must be for at least 30 minutes.", field="booking_dates")
    if hours > MAX_DURATION_HOURS:
        raise ValidationFailed("A single booking range cannot be longer than 7 days.", field="booking_dates")

    if hourly_rate and daily_rate:
        if hours < 24:
            return hours * hourly_rate
        return math.ceil(hours / 24) * daily_rate
    if hourly_rate:
        return hours * hourly_rate
    if daily_rate:
        if hours < 24:
            raise ValidationFailed("This hall requires a minimum booking of 24 hours.", field="booking_dates")
        return math.ceil(hours / 24) * daily_rate
    raise ValidationFailed("Hall does not have valid pricing information.", field="hall_id")


def facility_cost_for(facility: HallFacility, quantity: int, hours: Decimal) -> Decimal:
    """Cost of ``quantity`` units of ``facility`` over one range of ``hours``."""
    if not facility.chargeable or facility.charge_method == "free":
        return Decimal("0")

    if facility.charge_method == "per_hour":
        multiplier = hours
    elif facility.charge_method == "per_day":
        multiplier = Decimal(math.ceil(hours / 24))
    else:
        multiplier = Decimal(1)

    cost = Decimal(facility.cost) * multiplier
    if facility.charge_per_unit:
        cost *= quantity
    return cost


def reservation_fee_for(total_price: Decimal, percentage: Decimal | int | float | None) -> Decimal:
    return money(Decimal(total_price) * Decimal(str(percentage or 0)) / 100)


def resolve_facilities(
    hall: Hall, requested: Sequence[FacilityRequest]
) -> list[tuple[HallFacility, int]]:
    """Match requested facility ids against the hall's catalogue."""
    catalogue = {facility.id: facility for facility in hall.facilities}
    resolved = []
    for index, item in enumerate(requested):
        facility = catalogue.get(item.facility_id)
        if facility is None or not facility.available:
            raise NotFound(f"Facility with ID {item.facility_id} not found.")
        if item.quantity <= 0:
            raise ValidationFailed(
                "Facility quantity must be a positive number.",
                field=f"selected_facilities[{index}].quantity",
            )
        if item.quantity > facility.quantity:
            raise ValidationFailed(
                f"Cannot book {item.quantity} of {facility.name}. Only {facility.quantity} available.",
                field=f"selected_facilities[{index}].quantity",
            )
        resolved.append((facility, item.quantity))
    return resolved


def quote(hall: Hall, ranges: Sequence[TimeRange], requested: Sequence[FacilityRequest] = ()) -> PriceQuote:
    """Compute the price snapshot for ``ranges`` on ``hall``."""
    if not ranges:
        raise ValidationFailed("At least one booking date range is required.", field="booking_dates")

    facilities = resolve_facilities(hall, requested)
    hall_total = Decimal("0")
    facilities_total = Decimal("0")
    breakdown: dict[uuid.UUID, FacilityCost] = {}

    for time_range in ranges:
        hours = time_range.hours
        hall_total += hall_price_for(hours, hall.hourly_rate, hall.daily_rate)

        for facility, quantity in facilities:
            cost = facility_cost_for(facility, quantity, hours)
            facilities_total += cost
            entry = breakdown.get(facility.id)
            if entry is None:
                breakdown[facility.id] = FacilityCost(
                    facility_id=facility.id,
                    name=facility.name,
                    cost=cost,
                    charge_method=facility.charge_method,
                    quantity=quantity,
                )
            else:
                entry.cost += cost

    total = money(hall_total + facilities_total)
    return PriceQuote(
        total_price=total,
        hall_price=money(hall_total),
        facilities_price=money(facilities_total),
        reservation_fee=reservation_fee_for(total, hall.reservation_fee_percentage),
        facilities=list(breakdown.values()),
    )
