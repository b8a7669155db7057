"""Payment and Task State Machine Guards.

Uses python-statemachine to enforce legal state transitions at the domain level.
No matter what the API or a racing request does, a write that would move a
payment out of `verified` (or reopen a finished task) raises
InvalidStateTransitionError before the record is touched.

Payment transition table (every open state accepts every outcome):
    pending | not_found | failed | wrong_recipient | underpaid | error
        -> not_found        (tx_not_found)
        -> failed           (tx_failed)
        -> wrong_recipient  (tx_wrong_recipient)
        -> underpaid        (tx_underpaid)
        -> error            (oracle_error)
        -> verified         (tx_confirmed)
    verified is final.

Task transition table:
    processing -> completed  (complete)
    processing -> abandoned  (abandon)
"""

from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from agent_payment_gateway.domain.exceptions import InvalidStateTransitionError


class _GuardMixin:
    """Shared helpers for the guards below."""

    def _check_status(self, current_status: str) -> None:
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )

    @property
    def status(self) -> str:
        """Return the current state value as a string."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


class PaymentStateMachine(_GuardMixin, StateMachine):
    """State machine that guards the payment verification lifecycle.

    Usage:
        sm = PaymentStateMachine(current_status="pending")
        sm.tx_underpaid()   # transitions to underpaid
        sm.tx_confirmed()   # transitions to verified
    """

    # --- States ---
    pending = State("pending", value="pending", initial=True)
    not_found = State("not_found", value="not_found")
    failed = State("failed", value="failed")
    wrong_recipient = State("wrong_recipient", value="wrong_recipient")
    underpaid = State("underpaid", value="underpaid")
    errored = State("error", value="error")
    verified = State("verified", value="verified", final=True)

    # --- Events / Transitions ---
    tx_not_found = not_found.from_(
        pending, not_found, failed, wrong_recipient, underpaid, errored
    )
    tx_failed = failed.from_(
        pending, not_found, failed, wrong_recipient, underpaid, errored
    )
    tx_wrong_recipient = wrong_recipient.from_(
        pending, not_found, failed, wrong_recipient, underpaid, errored
    )
    tx_underpaid = underpaid.from_(
        pending, not_found, failed, wrong_recipient, underpaid, errored
    )
    oracle_error = errored.from_(
        pending, not_found, failed, wrong_recipient, underpaid, errored
    )
    tx_confirmed = verified.from_(
        pending, not_found, failed, wrong_recipient, underpaid, errored
    )

    def __init__(self, current_status: str = "pending") -> None:
        self._check_status(current_status)
        super().__init__(start_value=current_status)


class TaskStateMachine(_GuardMixin, StateMachine):
    """State machine that guards the task lifecycle."""

    processing = State("processing", value="processing", initial=True)
    completed = State("completed", value="completed", final=True)
    abandoned = State("abandoned", value="abandoned", final=True)

    complete = processing.to(completed)
    abandon = processing.to(abandoned)

    def __init__(self, current_status: str = "processing") -> None:
        self._check_status(current_status)
        super().__init__(start_value=current_status)


def validate_transition(
    machine_cls: type[PaymentStateMachine] | type[TaskStateMachine],
    current_status: str,
    event_name: str,
) -> str:
    """Validate a state transition and return the new status.

    Creates a temporary state machine at `current_status`, fires the named
    event, and returns the resulting status string.

    Raises:
        InvalidStateTransitionError: If the transition is illegal.
        ValueError: If the status or event name is unknown.
    """
    sm = machine_cls(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    try:
        event_method()
    except TransitionNotAllowed as err:
        raise InvalidStateTransitionError(current_status, event_name) from err
    return sm.status
