"""Verification Service - reconciles a claimed transaction against the ledger.

Coordinates between:
    - The payment store (state, guarded by PaymentStateMachine)
    - The ledger oracle (ground truth)
    - domain.verification.reconcile (the ordered outcome rules)
    - The registry (earnings credit on success)

Every call against the same payment id is serialized by a per-payment lock,
so a slow attempt can never overwrite a verified result written by a faster
one. Calls for different payments run fully in parallel.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import TYPE_CHECKING

from agent_payment_gateway.domain.enums import PaymentStatus, VerificationResult
from agent_payment_gateway.domain.exceptions import (
    InvalidArgumentError,
    LedgerUnavailableError,
    PaymentNotFoundError,
)
from agent_payment_gateway.domain.models import Payment, utcnow
from agent_payment_gateway.domain.state_machine import (
    PaymentStateMachine,
    validate_transition,
)
from agent_payment_gateway.domain.verification import (
    DEFAULT_TOLERANCE,
    Reconciliation,
    VerificationOutcome,
    reconcile,
)
from agent_payment_gateway.infrastructure.locks import KeyedLock
from agent_payment_gateway.logging_config import get_logger

if TYPE_CHECKING:
    from agent_payment_gateway.domain.ledger_protocol import (
        LedgerOracle,
        TransactionRecord,
    )
    from agent_payment_gateway.domain.store_protocol import Store
    from agent_payment_gateway.services.registry_service import RegistryService

logger = get_logger(__name__)


class VerificationService:
    """Runs payment verification against the ledger oracle."""

    def __init__(
        self,
        payments: Store[Payment],
        ledger: LedgerOracle,
        registry: RegistryService,
        timeout_seconds: float = 15.0,
        tolerance: Decimal = DEFAULT_TOLERANCE,
    ) -> None:
        self._payments = payments
        self._ledger = ledger
        self._registry = registry
        self._timeout = timeout_seconds
        self._tolerance = tolerance
        self._locks = KeyedLock()

    async def verify(self, payment_id: str, tx_signature: str | None) -> VerificationOutcome:
        """Verify that `tx_signature` pays `payment_id`.

        1. Short-circuit if the payment is already verified (no oracle call)
        2. Record the claimed signature
        3. Query the ledger, bounded by the verification timeout
        4. Reconcile and write the outcome onto the payment

        Returns:
            The VerificationOutcome. Failed verifications are outcomes, not
            exceptions.

        Raises:
            PaymentNotFoundError: The payment does not exist.
            InvalidArgumentError: `tx_signature` is empty.
        """
        await self._get_payment_or_raise(payment_id)
        signature = (tx_signature or "").strip()
        if not signature:
            raise InvalidArgumentError("tx_signature is required")

        async with self._locks.hold(payment_id):
            payment = await self._get_payment_or_raise(payment_id)
            if payment.is_verified:
                logger.info(
                    "verification.already_verified",
                    payment_id=payment_id,
                    tx_signature=payment.tx_signature,
                )
                return VerificationOutcome.from_payment(
                    payment, VerificationResult.VERIFIED, received=payment.received_amount
                )

            # Recorded before the oracle call so a crash leaves an audit trail.
            payment = await self._payments.update(
                payment_id, lambda p: setattr(p, "tx_signature", signature)
            )

            logger.info("verification.querying_ledger", payment_id=payment_id, tx_signature=signature)
            try:
                record = await self._fetch(signature)
            except LedgerUnavailableError as exc:
                return await self._record_error(payment, exc.message)
            except TimeoutError:
                return await self._record_error(
                    payment, f"Ledger query timed out after {self._timeout}s"
                )

            return await self._record_reconciliation(
                payment, record, reconcile(payment, record, self._tolerance)
            )

    async def get_allowed_events(self, payment_id: str) -> list[str]:
        """State machine events that can still fire for a payment."""
        payment = await self._get_payment_or_raise(payment_id)
        return PaymentStateMachine(current_status=payment.status.value).get_allowed_events()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _fetch(self, signature: str) -> TransactionRecord | None:
        return await asyncio.wait_for(
            self._ledger.fetch_transaction(signature), timeout=self._timeout
        )

    async def _record_error(self, payment: Payment, reason: str) -> VerificationOutcome:
        updated = await self._transition(payment.id, VerificationResult.VERIFICATION_ERROR)
        logger.warning(
            "verification.ledger_error",
            payment_id=payment.id,
            tx_signature=payment.tx_signature,
            error=reason,
        )
        return VerificationOutcome.from_payment(
            updated, VerificationResult.VERIFICATION_ERROR, error=reason
        )

    async def _record_reconciliation(
        self,
        payment: Payment,
        record: TransactionRecord | None,
        reconciliation: Reconciliation,
    ) -> VerificationOutcome:
        result = reconciliation.result

        if result == VerificationResult.VERIFIED:
            updated = await self._transition(
                payment.id, result, record=record, received=reconciliation.received
            )
            await self._credit_payee(updated)
            logger.info(
                "verification.verified",
                payment_id=payment.id,
                tx_signature=payment.tx_signature,
                slot=updated.slot,
                received=reconciliation.received,
            )
        else:
            updated = await self._transition(payment.id, result)
            logger.info(
                "verification.rejected",
                payment_id=payment.id,
                tx_signature=payment.tx_signature,
                result=result,
                expected=payment.amount,
                received=reconciliation.received,
            )

        return VerificationOutcome.from_payment(
            updated,
            result,
            received=reconciliation.received,
            error=reconciliation.error,
        )

    async def _credit_payee(self, payment: Payment) -> None:
        """Credit the payee's earnings for a payment that just verified.

        The payment is already verified at this point and a retry will not
        credit again, so a failed credit is logged with everything needed
        to apply it by hand.
        """
        try:
            await self._registry.credit_earnings(payment.payee_id, payment.asset, payment.amount)
        except Exception:
            logger.exception(
                "verification.credit_failed",
                payment_id=payment.id,
                payee_id=payment.payee_id,
                asset=payment.asset,
                amount=payment.amount,
            )

    async def _transition(
        self,
        payment_id: str,
        result: VerificationResult,
        record: TransactionRecord | None = None,
        received: Decimal | None = None,
    ) -> Payment:
        """Write an outcome onto the payment through the state machine guard."""

        def _apply(payment: Payment) -> None:
            new_status = validate_transition(
                PaymentStateMachine, payment.status.value, result.event_name
            )
            payment.status = PaymentStatus(new_status)
            if result == VerificationResult.VERIFIED and record is not None:
                payment.slot = record.slot
                payment.block_time = record.block_time
                payment.received_amount = received
                payment.verified_at = utcnow()

        return await self._payments.update(payment_id, _apply)

    async def _get_payment_or_raise(self, payment_id: str) -> Payment:
        payment = await self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment
