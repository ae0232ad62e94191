"""Async Stripe API wrapper for one-time Checkout payments."""

import logging
import time
from decimal import Decimal

import stripe
from stripe import StripeClient

from venuebook.config import settings

logger = logging.getLogger(__name__)

# Stripe rejects Checkout Sessions that expire sooner than this.
MIN_SESSION_EXPIRY_MINUTES = 30


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


def to_minor_units(amount: Decimal) -> int:
    """Convert a two-decimal amount to the integer Stripe expects."""
    return int((Decimal(amount) * 100).to_integral_value())


async def create_payment_session(
    *,
    reference: str,
    amount: Decimal,
    description: str,
    success_url: str,
    cancel_url: str,
    customer_email: str | None = None,
) -> stripe.checkout.Session:
    """Create a one-time Checkout Session carrying ``reference``."""
    client = get_stripe_client()
    expiry_minutes = max(settings.stripe_session_expiry_minutes, MIN_SESSION_EXPIRY_MINUTES)
    expires_at = int(time.time()) + expiry_minutes * 60
    params = {
        "mode": "payment",
        "client_reference_id": reference,
        "metadata": {"payment_reference": reference},
        "line_items": [
            {
                "quantity": 1,
                "price_data": {
                    "currency": settings.stripe_currency,
                    "unit_amount": to_minor_units(amount),
                    "product_data": {"name": description},
                },
            }
        ],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "expires_at": expires_at,
    }
    if customer_email:
        params["customer_email"] = customer_email

    logger.info("Creating checkout session for reference %s (amount=%s)", reference, amount)
    return await client.v1.checkout.sessions.create_async(params=params)


async def retrieve_checkout_session(session_id: str) -> stripe.checkout.Session:
    """Retrieve a Checkout Session by ID."""
    client = get_stripe_client()
    return await client.v1.checkout.sessions.retrieve_async(session_id)


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify and construct a Stripe webhook event (synchronous)."""
    client = get_stripe_client()
    return client.construct_event(payload, sig_header, settings.stripe_webhook_secret)
