"""Execution Backend Protocol.

The gateway hands an admitted task's input to an execution backend and
treats it as opaque: it only awaits the output. Timeouts and failure
handling live in the TaskSupervisor, not in the backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from agent_payment_gateway.domain.models import Service


@runtime_checkable
class ExecutionBackend(Protocol):
    """Protocol that all execution backends must satisfy.

    Concrete implementations:
        - infrastructure/execution_backend.py  (SimulatedExecutionBackend)
    """

    async def run(self, service: Service, task_input: Any) -> dict:
        """Run the service on `task_input` and return its output payload."""
        ...
