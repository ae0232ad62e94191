"""Payment correlation — route gateway outcomes to their target, exactly once.

Every reference minted by the platform is persisted as a
:class:`PaymentRecord`. Applying an outcome first claims the record with
a guarded ``UPDATE ... WHERE applied_at IS NULL``; only the delivery that
wins the claim runs the target handler, and the claim commits together
with the handler's own transition. Redirect verification and webhooks can
therefore race or repeat without double-applying.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.config import settings
from venuebook.database import utcnow
from venuebook.errors import NotFound
from venuebook.models.payment import PaymentPurpose, PaymentRecord
from venuebook.payments.gateway import GatewayPaymentStatus, PaymentGateway, VerificationResult
from venuebook.payments.references import parse_reference

logger = logging.getLogger(__name__)

OutcomeHandler = Callable[[PaymentRecord, VerificationResult], Awaitable[None]]


@dataclass(frozen=True)
class AppliedOutcome:
    reference: str
    purpose: PaymentPurpose
    target_id: uuid.UUID
    status: GatewayPaymentStatus
    applied: bool


def register_payment(
    db: AsyncSession,
    *,
    reference: str,
    purpose: PaymentPurpose,
    target_id: uuid.UUID,
    amount: Decimal,
    hall_id: uuid.UUID | None = None,
) -> PaymentRecord:
    """Persist the mapping for a freshly minted reference (not flushed)."""
    record = PaymentRecord(
        reference=reference,
        purpose=purpose.value,
        target_id=target_id,
        hall_id=hall_id,
        amount=amount,
        currency=settings.stripe_currency,
    )
    db.add(record)
    return record


async def get_payment_record(db: AsyncSession, reference: str) -> PaymentRecord | None:
    result = await db.execute(select(PaymentRecord).where(PaymentRecord.reference == reference))
    return result.scalar_one_or_none()


class PaymentCorrelator:
    """Apply verified gateway outcomes to reservations and bookings."""

    def __init__(
        self,
        db: AsyncSession,
        gateway: PaymentGateway,
        handlers: dict[PaymentPurpose, OutcomeHandler],
    ) -> None:
        self.db = db
        self.gateway = gateway
        self.handlers = handlers

    async def _load(self, reference: str) -> PaymentRecord:
        parsed = parse_reference(reference)
        record = await get_payment_record(self.db, reference)
        if record is None or record.target_id != parsed.target_id or record.purpose != parsed.purpose.value:
            logger.warning("No payment record matches reference %s", reference)
            raise NotFound("Payment reference not found")
        return record

    async def verify_and_apply(self, reference: str) -> AppliedOutcome:
        """Ask the gateway for the outcome of ``reference`` and apply it."""
        record = await self._load(reference)
        if record.applied_at is not None:
            logger.info("Payment %s already applied; verification is a no-op", reference)
            return self._outcome(record, GatewayPaymentStatus(record.status.upper()), applied=False)

        result = await self.gateway.verify(reference, record.gateway_session_id)
        return await self._apply(record, result)

    async def apply(self, reference: str, result: VerificationResult) -> AppliedOutcome:
        """Apply an outcome delivered by the gateway (webhook path)."""
        record = await self._load(reference)
        return await self._apply(record, result)

    async def _apply(self, record: PaymentRecord, result: VerificationResult) -> AppliedOutcome:
        if result.status == GatewayPaymentStatus.PENDING:
            logger.info("Payment %s still pending at the gateway", record.reference)
            return self._outcome(record, result.status, applied=False)

        claimed = await self.db.execute(
            update(PaymentRecord)
            .where(PaymentRecord.id == record.id, PaymentRecord.applied_at.is_(None))
            .values(
                status=result.status.value.lower(),
                gateway_transaction_id=result.gateway_transaction_id,
                applied_at=utcnow(),
            )
        )
        if claimed.rowcount != 1:
            logger.info("Payment %s was applied by another delivery", record.reference)
            return self._outcome(record, result.status, applied=False)

        handler = self.handlers[PaymentPurpose(record.purpose)]
        logger.info("Applying %s outcome %s for %s", record.purpose, result.status.value, record.reference)
        await handler(record, result)
        # handlers commit their own transition; this covers handlers that found nothing to change
        await self.db.commit()
        return self._outcome(record, result.status, applied=True)

    @staticmethod
    def _outcome(record: PaymentRecord, status: GatewayPaymentStatus, *, applied: bool) -> AppliedOutcome:
        return AppliedOutcome(
            reference=record.reference,
            purpose=PaymentPurpose(record.purpose),
            target_id=record.target_id,
            status=status,
            applied=applied,
        )
