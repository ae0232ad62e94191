"""Payment gateway contract and its Stripe Checkout implementation."""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

import stripe

from venuebook.errors import PaymentGatewayError
from venuebook.payments import stripe_client

logger = logging.getLogger(__name__)


class GatewayPaymentStatus(str, enum.Enum):
    PAID = "PAID"
    FAILED = "FAILED"
    PENDING = "PENDING"


@dataclass(frozen=True)
class PaymentRequest:
    reference: str
    amount: Decimal
    description: str
    redirect_url: str
    cancel_url: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None


@dataclass(frozen=True)
class CheckoutSession:
    """What the client needs to complete payment at the gateway."""

    reference: str
    session_id: str
    checkout_url: str | None


@dataclass(frozen=True)
class VerificationResult:
    status: GatewayPaymentStatus
    gateway_transaction_id: str | None = None


class PaymentGateway(Protocol):
    async def initialize(self, request: PaymentRequest) -> CheckoutSession: ...

    async def verify(self, reference: str, session_id: str | None = None) -> VerificationResult: ...


def result_from_session(session) -> VerificationResult:
    """Map a Checkout Session onto a verification result."""
    transaction_id = getattr(session, "payment_intent", None)
    if transaction_id is not None and not isinstance(transaction_id, str):
        transaction_id = getattr(transaction_id, "id", None)

    if getattr(session, "payment_status", None) == "paid":
        return VerificationResult(GatewayPaymentStatus.PAID, transaction_id)
    if getattr(session, "status", None) == "expired":
        return VerificationResult(GatewayPaymentStatus.FAILED, transaction_id)
    return VerificationResult(GatewayPaymentStatus.PENDING, transaction_id)


class StripeGateway:
    """``PaymentGateway`` backed by Stripe Checkout."""

    async def initialize(self, request: PaymentRequest) -> CheckoutSession:
        try:
            session = await stripe_client.create_payment_session(
                reference=request.reference,
                amount=request.amount,
                description=request.description,
                success_url=request.redirect_url,
                cancel_url=request.cancel_url or request.redirect_url,
                customer_email=request.customer_email,
            )
        except stripe.StripeError as e:
            logger.exception("Stripe checkout creation failed for %s", request.reference)
            raise PaymentGatewayError("Could not initialize payment with the gateway.") from e
        return CheckoutSession(reference=request.reference, session_id=session.id, checkout_url=session.url)

    async def verify(self, reference: str, session_id: str | None = None) -> VerificationResult:
        if not session_id:
            logger.warning("No checkout session recorded for %s", reference)
            return VerificationResult(GatewayPaymentStatus.PENDING)
        try:
            session = await stripe_client.retrieve_checkout_session(session_id)
        except stripe.StripeError as e:
            logger.exception("Stripe verification failed for %s", reference)
            raise PaymentGatewayError("Could not verify payment with the gateway.") from e

        if session.client_reference_id and session.client_reference_id != reference:
            logger.warning(
                "Checkout session %s belongs to %s, not %s",
                session_id,
                session.client_reference_id,
                reference,
            )
            raise PaymentGatewayError("Checkout session does not match the payment reference.")
        return result_from_session(session)
