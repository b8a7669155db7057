"""Stats Service - read-only aggregates over the stores.

Recomputed from the stores on every call; nothing here is cached.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from agent_payment_gateway.domain.enums import PaymentStatus, TaskStatus

if TYPE_CHECKING:
    from agent_payment_gateway.domain.models import Agent, Payment, Service, Task
    from agent_payment_gateway.domain.store_protocol import Store


@dataclass(frozen=True)
class GatewayStats:
    network: str
    agents: int
    services: int
    payments_total: int
    payments_verified: int
    settled: dict[str, Decimal] = field(default_factory=dict)
    tasks_total: int = 0
    tasks_processing: int = 0
    tasks_completed: int = 0
    tasks_abandoned: int = 0
    uptime_seconds: float = 0.0


class StatsService:
    """Computes gateway-wide earnings and activity figures."""

    def __init__(
        self,
        agents: Store[Agent],
        services: Store[Service],
        payments: Store[Payment],
        tasks: Store[Task],
        network: str,
        started_at: float | None = None,
    ) -> None:
        self._agents = agents
        self._services = services
        self._payments = payments
        self._tasks = tasks
        self._network = network
        self._started_at = started_at if started_at is not None else time.monotonic()

    async def snapshot(self) -> GatewayStats:
        payments = await self._payments.list()
        tasks = await self._tasks.list()

        verified = [p for p in payments if p.status == PaymentStatus.VERIFIED]
        settled: dict[str, Decimal] = {}
        for payment in verified:
            settled[payment.asset.value] = settled.get(payment.asset.value, Decimal(0)) + payment.amount

        def _count(status: TaskStatus) -> int:
            return sum(1 for t in tasks if t.status == status)

        return GatewayStats(
            network=self._network,
            agents=len(await self._agents.list()),
            services=len(await self._services.list()),
            payments_total=len(payments),
            payments_verified=len(verified),
            settled=settled,
            tasks_total=len(tasks),
            tasks_processing=_count(TaskStatus.PROCESSING),
            tasks_completed=_count(TaskStatus.COMPLETED),
            tasks_abandoned=_count(TaskStatus.ABANDONED),
            uptime_seconds=round(time.monotonic() - self._started_at, 3),
        )
