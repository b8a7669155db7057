"""Simulated execution backend.

Stands in for the provider agent: waits a configurable delay, then returns a
canned result echoing the input. In production this would dispatch to the
provider's own endpoint.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from agent_payment_gateway.domain.models import utcnow
from agent_payment_gateway.logging_config import get_logger

if TYPE_CHECKING:
    from agent_payment_gateway.domain.models import Service

logger = get_logger(__name__)


class SimulatedExecutionBackend:
    """Instant-ish fake provider for demos and dry runs."""

    def __init__(self, delay_seconds: float = 1.0) -> None:
        self._delay = delay_seconds

    async def run(self, service: Service, task_input: Any) -> dict:
        logger.debug("backend.simulated_run", service_id=service.id, delay=self._delay)
        await asyncio.sleep(self._delay)
        return {
            "result": f'Task "{service.name}" completed successfully',
            "processed_by": service.agent_name,
            "input": task_input,
            "timestamp": utcnow().isoformat(),
        }
