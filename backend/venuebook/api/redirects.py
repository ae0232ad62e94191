"""Gateway return URLs: verify the payment, then send the browser to the frontend.

These endpoints never answer with an error. Anything that goes wrong
lands the customer on the frontend's failure page.
"""

import logging
from urllib.parse import urlencode

from fastapi.responses import RedirectResponse

from venuebook.config import settings
from venuebook.payments.correlation import PaymentCorrelator
from venuebook.payments.gateway import GatewayPaymentStatus

logger = logging.getLogger(__name__)

_PAGES = {
    GatewayPaymentStatus.PAID: "success",
    GatewayPaymentStatus.FAILED: "failed",
    GatewayPaymentStatus.PENDING: "pending",
}


def frontend_redirect(page: str, **params: str) -> RedirectResponse:
    return RedirectResponse(url=f"{settings.frontend_url}/payment/{page}?{urlencode(params)}")


async def verify_and_redirect(correlator: PaymentCorrelator, reference: str, kind: str) -> RedirectResponse:
    try:
        outcome = await correlator.verify_and_apply(reference)
    except Exception:
        logger.exception("Payment verification failed for %s", reference)
        await correlator.db.rollback()
        return frontend_redirect("failed", type=kind, reference=reference, error="verification_failed")

    if outcome.status == GatewayPaymentStatus.FAILED:
        return frontend_redirect("failed", type=kind, reference=reference, error="payment_failed")
    return frontend_redirect(_PAGES[outcome.status], type=kind, reference=reference)
