"""Payment reconciliation: the rules that decide whether a transaction pays.

`reconcile` is a pure function over a Payment and the ledger's record of the
claimed transaction. The conditions are applied in a fixed order and the
first match wins:

    1. transaction absent            -> NOT_FOUND_ON_CHAIN
    2. ledger reports an error       -> TRANSACTION_FAILED
    3. payee not among the accounts  -> WRONG_RECIPIENT
    4. native asset, delta too small -> UNDERPAID
    5. otherwise                     -> VERIFIED

Transient oracle failures never reach this module; the VerificationService
turns them into VERIFICATION_ERROR.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from agent_payment_gateway.domain.enums import (
    LAMPORTS_PER_SOL,
    Asset,
    PaymentStatus,
    VerificationResult,
)

if TYPE_CHECKING:
    from datetime import datetime

    from agent_payment_gateway.domain.ledger_protocol import TransactionRecord
    from agent_payment_gateway.domain.models import Payment

DEFAULT_TOLERANCE = Decimal("0.01")

_MESSAGES = {
    VerificationResult.NOT_FOUND_ON_CHAIN: (
        "Transaction not found on-chain. It may still be processing."
    ),
    VerificationResult.TRANSACTION_FAILED: "Transaction failed on-chain",
    VerificationResult.WRONG_RECIPIENT: (
        "Transaction does not involve the expected recipient wallet"
    ),
    VerificationResult.UNDERPAID: "Payment amount is less than required",
    VerificationResult.VERIFICATION_ERROR: "Error verifying transaction",
    VerificationResult.VERIFIED: (
        "Payment verified on-chain. You can now execute the service."
    ),
}


@dataclass(frozen=True)
class Reconciliation:
    """Result of applying the reconciliation rules to one transaction."""

    result: VerificationResult
    received: Decimal | None = None
    error: object | None = None


@dataclass(frozen=True)
class VerificationOutcome:
    """What a verify call reports back to its caller.

    Attributes:
        payment_id: The payment that was verified.
        result: Which of the fixed outcomes applied.
        status: The payment status after the attempt.
        tx_signature: The claimed transaction.
        message: Human-readable explanation.
        asset: The expected asset.
        expected: The expected amount.
        received: Amount credited to the payee (native asset only).
        slot: Ledger ordering marker (verified only).
        block_time: Block timestamp (verified only).
        verified_at: Wall-clock verification time (verified only).
        error: Ledger error payload or oracle failure reason.
    """

    payment_id: str
    result: VerificationResult
    status: PaymentStatus
    tx_signature: str | None
    message: str
    asset: Asset
    expected: Decimal
    received: Decimal | None = None
    slot: int | None = None
    block_time: int | None = None
    verified_at: datetime | None = None
    error: object | None = None

    @property
    def is_verified(self) -> bool:
        return self.result == VerificationResult.VERIFIED

    @classmethod
    def from_payment(
        cls,
        payment: Payment,
        result: VerificationResult,
        received: Decimal | None = None,
        error: object | None = None,
    ) -> VerificationOutcome:
        """Build an outcome from the payment record as it now stands."""
        return cls(
            payment_id=payment.id,
            result=result,
            status=payment.status,
            tx_signature=payment.tx_signature,
            message=_MESSAGES[result],
            asset=payment.asset,
            expected=payment.amount,
            received=received,
            slot=payment.slot,
            block_time=payment.block_time,
            verified_at=payment.verified_at,
            error=error,
        )

    def to_dict(self) -> dict:
        """Serialize for API responses and logs."""
        return {
            "payment_id": self.payment_id,
            "result": self.result.value,
            "status": self.status.value,
            "tx_signature": self.tx_signature,
            "message": self.message,
            "asset": self.asset.value,
            "expected": str(self.expected),
            "received": str(self.received) if self.received is not None else None,
            "slot": self.slot,
            "block_time": self.block_time,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "error": self.error,
        }


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / LAMPORTS_PER_SOL


def minimum_accepted(amount: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE) -> Decimal:
    """Smallest received amount that still counts as paid in full."""
    return amount * (1 - tolerance)


def reconcile(
    payment: Payment,
    record: TransactionRecord | None,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> Reconciliation:
    """Reconcile a payment against the ledger's record of the claimed transaction."""
    if record is None:
        return Reconciliation(VerificationResult.NOT_FOUND_ON_CHAIN)

    if not record.succeeded:
        return Reconciliation(VerificationResult.TRANSACTION_FAILED, error=record.error)

    if not record.involves(payment.payee_wallet):
        return Reconciliation(VerificationResult.WRONG_RECIPIENT)

    if not payment.asset.is_native:
        # Token transfers are not visible in native balances.
        return Reconciliation(VerificationResult.VERIFIED)

    delta = record.balance_delta(payment.payee_wallet) or 0
    received = lamports_to_sol(delta)
    if received < minimum_accepted(payment.amount, tolerance):
        return Reconciliation(VerificationResult.UNDERPAID, received=received)

    return Reconciliation(VerificationResult.VERIFIED, received=received)
