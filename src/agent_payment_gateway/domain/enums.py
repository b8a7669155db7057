"""Domain enumerations for the Agent Payment Gateway.

These enums define the canonical states and types used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum
from decimal import Decimal


class Asset(enum.StrEnum):
    """Assets a service can be priced in. Exactly one per service."""

    SOL = "SOL"
    USDC = "USDC"

    @property
    def is_native(self) -> bool:
        """True for the ledger's native asset (balance deltas are checkable)."""
        return self is Asset.SOL


NATIVE_ASSET = Asset.SOL
LAMPORTS_PER_SOL = Decimal(1_000_000_000)

# Amounts are stored as NUMERIC(20, 9): one lamport is the smallest unit.
AMOUNT_DECIMAL_PLACES = 9
MAX_AMOUNT = Decimal(10) ** (20 - AMOUNT_DECIMAL_PLACES)


class PaymentStatus(enum.StrEnum):
    """Lifecycle states of a payment.

    Transitions are enforced by PaymentStateMachine.
    See domain/state_machine.py for the transition table.
    """

    PENDING = "pending"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    WRONG_RECIPIENT = "wrong_recipient"
    UNDERPAID = "underpaid"
    ERROR = "error"
    VERIFIED = "verified"


class TaskStatus(enum.StrEnum):
    """Lifecycle states of a task admitted by the execution gate."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class VerificationResult(enum.StrEnum):
    """Mutually exclusive outcomes of reconciling a claimed transaction.

    These are business outcomes returned to the caller, not exceptions.
    """

    NOT_FOUND_ON_CHAIN = "not_found_on_chain"
    TRANSACTION_FAILED = "transaction_failed"
    WRONG_RECIPIENT = "wrong_recipient"
    UNDERPAID = "underpaid"
    VERIFICATION_ERROR = "verification_error"
    VERIFIED = "verified"

    @property
    def payment_status(self) -> PaymentStatus:
        """The payment status an outcome writes onto the payment record."""
        return _RESULT_TO_STATUS[self]

    @property
    def event_name(self) -> str:
        """The PaymentStateMachine event that records this outcome."""
        return _RESULT_TO_EVENT[self]


_RESULT_TO_STATUS = {
    VerificationResult.NOT_FOUND_ON_CHAIN: PaymentStatus.NOT_FOUND,
    VerificationResult.TRANSACTION_FAILED: PaymentStatus.FAILED,
    VerificationResult.WRONG_RECIPIENT: PaymentStatus.WRONG_RECIPIENT,
    VerificationResult.UNDERPAID: PaymentStatus.UNDERPAID,
    VerificationResult.VERIFICATION_ERROR: PaymentStatus.ERROR,
    VerificationResult.VERIFIED: PaymentStatus.VERIFIED,
}

_RESULT_TO_EVENT = {
    VerificationResult.NOT_FOUND_ON_CHAIN: "tx_not_found",
    VerificationResult.TRANSACTION_FAILED: "tx_failed",
    VerificationResult.WRONG_RECIPIENT: "tx_wrong_recipient",
    VerificationResult.UNDERPAID: "tx_underpaid",
    VerificationResult.VERIFICATION_ERROR: "oracle_error",
    VerificationResult.VERIFIED: "tx_confirmed",
}
