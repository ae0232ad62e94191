"""Bookings API router — pay-first and walk-in bookings, cancellation, lists."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from venuebook.api.deps import (
    get_booking_service,
    get_current_active_user,
    get_elevated_user,
    get_payment_correlator,
)
from venuebook.api.redirects import verify_and_redirect
from venuebook.models.user import User
from venuebook.payments.correlation import PaymentCorrelator
from venuebook.schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingListResponse,
    BookingResponse,
    WalkInBookingCreate,
)
from venuebook.schemas.common import CheckoutResponse
from venuebook.services.booking_service import BookingRequest, BookingService
from venuebook.services.conflicts import TimeRange
from venuebook.services.listing import ListFilters
from venuebook.services.pricing import FacilityRequest
from venuebook.services.reservation_service import WalkInDetails

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


def _filters(
    status: str | None = Query(None, description="confirmed or cancelled"),
    payment_status: str | None = Query(None, description="pending, paid or failed"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> ListFilters:
    return ListFilters(status=status, payment_status=payment_status, skip=skip, limit=limit)


def _request(body: BookingCreate) -> BookingRequest:
    return BookingRequest(
        hall_id=body.hall_id,
        booking_dates=[TimeRange(d.start_time, d.end_time) for d in body.booking_dates],
        event_details=body.event_details,
        selected_facilities=[
            FacilityRequest(facility_id=f.facility_id, quantity=f.quantity) for f in body.selected_facilities
        ],
    )


def _page(items, total: int) -> BookingListResponse:
    return BookingListResponse(items=[BookingResponse.model_validate(b) for b in items], total=total)


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a hall and pay online",
)
async def create_booking(
    body: BookingCreate,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    created = await service.create_online(current_user, _request(body))
    return BookingCreateResponse(
        booking=BookingResponse.model_validate(created.booking),
        checkout=CheckoutResponse.model_validate(created.checkout) if created.checkout else None,
    )


@router.post(
    "/walk-in",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a walk-in booking settled offline",
)
async def create_walk_in_booking(
    body: WalkInBookingCreate,
    current_user: User = Depends(get_elevated_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    walk_in = body.walk_in_customer
    booking = await service.create_walk_in(
        current_user,
        _request(body),
        WalkInDetails(full_name=walk_in.full_name, phone=walk_in.phone, email=walk_in.email),
        body.payment_method,
    )
    return BookingResponse.model_validate(booking)


@router.get("/verify", summary="Gateway return URL for booking payments")
async def verify_booking_payment(
    payment_reference: str = Query(..., alias="paymentReference"),
    correlator: PaymentCorrelator = Depends(get_payment_correlator),
) -> RedirectResponse:
    return await verify_and_redirect(correlator, payment_reference, "booking")


@router.get("/me", response_model=BookingListResponse)
async def list_my_bookings(
    filters: ListFilters = Depends(_filters),
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    items, total = await service.list_bookings(filters, user_id=current_user.id)
    return _page(items, total)


@router.get("/hall/{hall_id}", response_model=BookingListResponse)
async def list_hall_bookings(
    hall_id: uuid.UUID,
    filters: ListFilters = Depends(_filters),
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    items, total = await service.list_for_hall(current_user, hall_id, filters)
    return _page(items, total)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = await service.cancel(current_user, booking_id)
    return BookingResponse.model_validate(booking)
