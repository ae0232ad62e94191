"""Stripe webhook endpoint — receives and processes Checkout events."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status

from venuebook.api.deps import get_payment_correlator
from venuebook.payments.correlation import PaymentCorrelator
from venuebook.payments.stripe_client import construct_webhook_event
from venuebook.payments.webhooks import EVENT_HANDLERS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    correlator: PaymentCorrelator = Depends(get_payment_correlator),
) -> dict[str, str]:
    """Receive and process Stripe webhook events."""
    # Raw bytes are required for signature verification
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")

    try:
        event = construct_webhook_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload",
        ) from e

    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.debug("Unhandled webhook event type: %s", event.type)
        return {"status": "ignored"}

    logger.info("Processing webhook event: %s (id=%s)", event.type, event.id)
    try:
        await handler(correlator, event)
        await correlator.db.commit()
    except Exception as e:
        await correlator.db.rollback()
        logger.exception("Error processing webhook event %s", event.id)
        # 500 makes Stripe redeliver
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from e

    return {"status": "processed"}
