"""Stripe webhook event handlers — feed Checkout outcomes to the correlator."""

import logging

import stripe

from venuebook.errors import NotFound, ValidationFailed
from venuebook.payments.correlation import AppliedOutcome, PaymentCorrelator
from venuebook.payments.gateway import (
    GatewayPaymentStatus,
    VerificationResult,
    result_from_session,
)

logger = logging.getLogger(__name__)


def _reference_of(session) -> str | None:
    """Read the correlation reference from a Checkout Session."""
    reference = getattr(session, "client_reference_id", None)
    if reference:
        return reference
    metadata = getattr(session, "metadata", None) or {}
    return metadata.get("payment_reference")


async def _apply(
    correlator: PaymentCorrelator, event: stripe.Event, result: VerificationResult
) -> AppliedOutcome | None:
    session = event.data.object
    reference = _reference_of(session)
    if not reference:
        logger.info("Checkout session %s carries no payment reference, skipping", session.id)
        return None
    try:
        return await correlator.apply(reference, result)
    except (NotFound, ValidationFailed):
        logger.warning("Ignoring %s for unknown reference %s (session %s)", event.type, reference, session.id)
        return None


async def handle_checkout_session_completed(
    correlator: PaymentCorrelator, event: stripe.Event
) -> AppliedOutcome | None:
    """Handle checkout.session.completed — paid now, or pending an async method."""
    return await _apply(correlator, event, result_from_session(event.data.object))


async def handle_async_payment_succeeded(
    correlator: PaymentCorrelator, event: stripe.Event
) -> AppliedOutcome | None:
    transaction_id = getattr(event.data.object, "payment_intent", None)
    return await _apply(correlator, event, VerificationResult(GatewayPaymentStatus.PAID, transaction_id))


async def handle_async_payment_failed(
    correlator: PaymentCorrelator, event: stripe.Event
) -> AppliedOutcome | None:
    transaction_id = getattr(event.data.object, "payment_intent", None)
    return await _apply(correlator, event, VerificationResult(GatewayPaymentStatus.FAILED, transaction_id))


async def handle_checkout_session_expired(
    correlator: PaymentCorrelator, event: stripe.Event
) -> AppliedOutcome | None:
    """Handle checkout.session.expired — the customer never paid."""
    return await _apply(correlator, event, VerificationResult(GatewayPaymentStatus.FAILED))


EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "checkout.session.async_payment_succeeded": handle_async_payment_succeeded,
    "checkout.session.async_payment_failed": handle_async_payment_failed,
    "checkout.session.expired": handle_checkout_session_expired,
}
