"""Domain exceptions for the Agent Payment Gateway.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.

Verification outcomes (not_found_on_chain, underpaid, ...) are NOT exceptions;
see domain/verification.py.
"""


class GatewayError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "GATEWAY_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Argument Errors ---


class InvalidArgumentError(GatewayError):
    """Raised for missing or malformed caller input. Always caller-fixable."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_ARGUMENT")


# --- Lookup Errors ---


class NotFoundError(GatewayError):
    """Raised when a referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, entity_id: str) -> None:
        super().__init__(
            message=f"{self.entity} not found: {entity_id}",
            code=f"{self.entity.upper()}_NOT_FOUND",
        )
        self.entity_id = entity_id


class AgentNotFoundError(NotFoundError):
    entity = "Agent"


class ServiceNotFoundError(NotFoundError):
    entity = "Service"


class PaymentNotFoundError(NotFoundError):
    entity = "Payment"


class TaskNotFoundError(NotFoundError):
    entity = "Task"


# --- Gate Errors ---


class PaymentNotVerifiedError(GatewayError):
    """Raised when execution is requested for a payment that is not verified.

    Carries the current status so the caller can decide whether to retry
    verification or abandon the payment.
    """

    def __init__(self, payment_id: str, status: str) -> None:
        super().__init__(
            message=f"Payment {payment_id} is not verified (status: {status})",
            code="PAYMENT_NOT_VERIFIED",
        )
        self.payment_id = payment_id
        self.status = status


# --- State Machine Errors ---


class InvalidStateTransitionError(GatewayError):
    """Raised when an attempted state transition is not allowed.

    Example: verified -> underpaid (verified is final).
    """

    def __init__(self, current_state: str, attempted_event: str) -> None:
        super().__init__(
            message=f"Invalid state transition: {attempted_event} from {current_state}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.attempted_event = attempted_event


# --- Ledger Errors ---


class LedgerUnavailableError(GatewayError):
    """Raised by a ledger oracle for transient failures (network, timeout, RPC).

    Distinct from a transaction being absent, which is a normal result.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message=message, code="LEDGER_UNAVAILABLE")
        self.details = details or {}
