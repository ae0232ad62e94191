"""Tests for Stripe webhook handler functions with mocked Stripe events."""

import uuid

from conftest import make_event, reservation_request, slot
from venuebook.models.reservation import Reservation
from venuebook.payments.gateway import GatewayPaymentStatus
from venuebook.payments.webhooks import (
    EVENT_HANDLERS,
    handle_async_payment_failed,
    handle_checkout_session_completed,
    handle_checkout_session_expired,
)


async def _pending_reservation(reservation_service, customer, hall, clock):
    created = await reservation_service.create(customer, reservation_request(hall, [slot(clock)]))
    return created.reservation


async def test_completed_and_paid_applies_deposit(reservation_service, correlator, customer, hall, clock):
    reservation = await _pending_reservation(reservation_service, customer, hall, clock)
    event = make_event(
        "checkout.session.completed",
        client_reference_id=reservation.payment_reference,
        payment_status="paid",
        payment_intent="pi_webhook",
    )

    outcome = await handle_checkout_session_completed(correlator, event)

    assert outcome.applied is True
    assert outcome.status == GatewayPaymentStatus.PAID
    assert reservation.payment_status == "paid"
    assert reservation.transaction_reference == "pi_webhook"


async def test_completed_but_unpaid_waits(reservation_service, correlator, customer, hall, clock):
    reservation = await _pending_reservation(reservation_service, customer, hall, clock)
    event = make_event(
        "checkout.session.completed",
        client_reference_id=reservation.payment_reference,
        payment_status="unpaid",
        status="complete",
    )

    outcome = await handle_checkout_session_completed(correlator, event)

    assert outcome.applied is False
    assert reservation.payment_status == "pending"


async def test_reference_read_from_metadata(reservation_service, correlator, customer, hall, clock):
    reservation = await _pending_reservation(reservation_service, customer, hall, clock)
    event = make_event(
        "checkout.session.completed",
        metadata={"payment_reference": reservation.payment_reference},
        payment_status="paid",
    )
    outcome = await handle_checkout_session_completed(correlator, event)
    assert outcome.applied is True


async def test_expired_session_drops_reservation(db_session, reservation_service, correlator, customer, hall, clock):
    reservation = await _pending_reservation(reservation_service, customer, hall, clock)
    reservation_id = reservation.id
    event = make_event("checkout.session.expired", client_reference_id=reservation.payment_reference, status="expired")

    await handle_checkout_session_expired(correlator, event)

    assert await db_session.get(Reservation, reservation_id) is None


async def test_async_failure(db_session, reservation_service, correlator, customer, hall, clock):
    reservation = await _pending_reservation(reservation_service, customer, hall, clock)
    reservation_id = reservation.id
    event = make_event("checkout.session.async_payment_failed", client_reference_id=reservation.payment_reference)

    outcome = await handle_async_payment_failed(correlator, event)

    assert outcome.status == GatewayPaymentStatus.FAILED
    assert await db_session.get(Reservation, reservation_id) is None


async def test_unknown_reference_ignored(correlator):
    event = make_event(
        "checkout.session.completed",
        client_reference_id=f"RES_{uuid.uuid4().hex}_abc",
        payment_status="paid",
    )
    assert await handle_checkout_session_completed(correlator, event) is None


async def test_foreign_session_ignored(correlator):
    event = make_event("checkout.session.completed", payment_status="paid")
    assert await handle_checkout_session_completed(correlator, event) is None


def test_handled_event_types():
    assert set(EVENT_HANDLERS) == {
        "checkout.session.completed",
        "checkout.session.async_payment_succeeded",
        "checkout.session.async_payment_failed",
        "checkout.session.expired",
    }
