"""Domain layer - pure business logic with zero framework dependencies."""

from agent_payment_gateway.domain.enums import (
    Asset,
    PaymentStatus,
    TaskStatus,
    VerificationResult,
)
from agent_payment_gateway.domain.exceptions import (
    GatewayError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    LedgerUnavailableError,
    NotFoundError,
    PaymentNotVerifiedError,
)
from agent_payment_gateway.domain.ledger_protocol import LedgerOracle, TransactionRecord
from agent_payment_gateway.domain.models import Agent, Payment, Service, Task
from agent_payment_gateway.domain.state_machine import (
    PaymentStateMachine,
    TaskStateMachine,
    validate_transition,
)
from agent_payment_gateway.domain.verification import VerificationOutcome, reconcile

__all__ = [
    "Agent",
    "Asset",
    "GatewayError",
    "InvalidArgumentError",
    "InvalidStateTransitionError",
    "LedgerOracle",
    "LedgerUnavailableError",
    "NotFoundError",
    "Payment",
    "PaymentNotVerifiedError",
    "PaymentStateMachine",
    "PaymentStatus",
    "Service",
    "Task",
    "TaskStateMachine",
    "TaskStatus",
    "TransactionRecord",
    "VerificationOutcome",
    "VerificationResult",
    "reconcile",
    "validate_transition",
]
