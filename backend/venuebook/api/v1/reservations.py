"""Reservations API router — create, pay the deposit, convert, list.

Authorization lives in ``ReservationService``: holders act on their own
reservations; hall staff, owners and super admins act for their halls.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from venuebook.api.deps import (
    get_current_active_user,
    get_payment_correlator,
    get_reservation_service,
)
from venuebook.api.redirects import verify_and_redirect
from venuebook.models.reservation import PaymentStatus
from venuebook.models.user import User
from venuebook.payments.correlation import PaymentCorrelator
from venuebook.schemas.booking import BookingResponse
from venuebook.schemas.common import CheckoutResponse
from venuebook.schemas.reservation import (
    ConvertRequest,
    ConvertResponse,
    ReservationCreate,
    ReservationCreateResponse,
    ReservationListResponse,
    ReservationResponse,
)
from venuebook.services.conflicts import TimeRange
from venuebook.services.listing import ListFilters
from venuebook.services.pricing import FacilityRequest
from venuebook.services.reservation_service import (
    ReservationRequest,
    ReservationService,
    WalkInDetails,
)

router = APIRouter(prefix="/api/v1/reservations", tags=["reservations"])


def _filters(
    status: str | None = Query(None, description="ACTIVE, CONVERTED, EXPIRED or CONVERSION_FAILED"),
    payment_status: str | None = Query(None, description="pending, paid or failed"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> ListFilters:
    return ListFilters(status=status, payment_status=payment_status, skip=skip, limit=limit)


def _page(items, total: int) -> ReservationListResponse:
    return ReservationListResponse(
        items=[ReservationResponse.model_validate(item) for item in items],
        total=total,
    )


# ---------------------------------------------------------------------------
# Create / convert
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=ReservationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a hall with a deposit",
)
async def create_reservation(
    body: ReservationCreate,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationCreateResponse:
    """Create an ACTIVE reservation.

    Online reservations return a checkout for the deposit; walk-in
    reservations settled offline are paid immediately.
    """
    walk_in = body.walk_in_customer
    created = await service.create(
        current_user,
        ReservationRequest(
            hall_id=body.hall_id,
            booking_dates=[TimeRange(d.start_time, d.end_time) for d in body.booking_dates],
            event_details=body.event_details,
            selected_facilities=[
                FacilityRequest(facility_id=f.facility_id, quantity=f.quantity) for f in body.selected_facilities
            ],
            walk_in_customer=(
                WalkInDetails(full_name=walk_in.full_name, phone=walk_in.phone, email=walk_in.email)
                if walk_in
                else None
            ),
            payment_method=body.payment_method,
        ),
    )
    reservation = created.reservation
    return ReservationCreateResponse(
        reservation=ReservationResponse.model_validate(reservation),
        deposit_due=(
            reservation.reservation_fee
            if reservation.payment_status == PaymentStatus.PENDING.value
            else Decimal("0")
        ),
        checkout=CheckoutResponse.model_validate(created.checkout) if created.checkout else None,
    )


@router.get("/verify", summary="Gateway return URL for deposit payments")
async def verify_reservation_payment(
    payment_reference: str = Query(..., alias="paymentReference"),
    correlator: PaymentCorrelator = Depends(get_payment_correlator),
) -> RedirectResponse:
    return await verify_and_redirect(correlator, payment_reference, "reservation")


@router.get("/verify-conversion", summary="Gateway return URL for balance payments")
async def verify_conversion_payment(
    payment_reference: str = Query(..., alias="paymentReference"),
    correlator: PaymentCorrelator = Depends(get_payment_correlator),
) -> RedirectResponse:
    return await verify_and_redirect(correlator, payment_reference, "conversion")


@router.post(
    "/{reservation_id}/convert",
    response_model=ConvertResponse,
    summary="Convert a paid reservation into a booking",
)
async def convert_reservation(
    reservation_id: uuid.UUID,
    body: ConvertRequest | None = None,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
) -> ConvertResponse:
    """Finalize at once (zero balance, or offline settlement by hall staff),
    or return a checkout for the remaining balance.
    """
    result = await service.convert(
        current_user, reservation_id, payment_method=body.payment_method if body else None
    )
    return ConvertResponse(
        reservation=ReservationResponse.model_validate(result.reservation),
        booking=BookingResponse.model_validate(result.booking) if result.booking else None,
        checkout=CheckoutResponse.model_validate(result.checkout) if result.checkout else None,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/me", response_model=ReservationListResponse)
async def list_my_reservations(
    filters: ListFilters = Depends(_filters),
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    items, total = await service.list_reservations(filters, user_id=current_user.id)
    return _page(items, total)


@router.get("/hall/{hall_id}", response_model=ReservationListResponse)
async def list_hall_reservations(
    hall_id: uuid.UUID,
    filters: ListFilters = Depends(_filters),
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    items, total = await service.list_for_hall(current_user, hall_id, filters)
    return _page(items, total)


@router.get("/user/{user_id}", response_model=ReservationListResponse)
async def list_user_reservations(
    user_id: uuid.UUID,
    filters: ListFilters = Depends(_filters),
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    items, total = await service.list_for_user(current_user, user_id, filters)
    return _page(items, total)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    reservation = await service.get_for_actor(current_user, reservation_id)
    return ReservationResponse.model_validate(reservation)
