"""Gateway wiring - builds the stores, collaborators and services once.

Both the REST routes and tests use the same Gateway object, so there is a
single source of truth for state and a single place to inject fakes:

    gateway = build_gateway(settings, ledger=FakeLedger(), backend=FakeBackend())
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from agent_payment_gateway.config import Settings, get_settings
from agent_payment_gateway.infrastructure.execution_backend import SimulatedExecutionBackend
from agent_payment_gateway.infrastructure.memory_store import InMemoryStore
from agent_payment_gateway.infrastructure.solana_client import SolanaLedgerClient
from agent_payment_gateway.logging_config import get_logger
from agent_payment_gateway.services.execution_service import ExecutionService, TaskSupervisor
from agent_payment_gateway.services.payment_service import PaymentService
from agent_payment_gateway.services.registry_service import RegistryService
from agent_payment_gateway.services.stats_service import StatsService
from agent_payment_gateway.services.verification_service import VerificationService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from agent_payment_gateway.domain.execution_protocol import ExecutionBackend
    from agent_payment_gateway.domain.ledger_protocol import LedgerOracle
    from agent_payment_gateway.domain.models import Agent, Payment, Service, Task
    from agent_payment_gateway.domain.store_protocol import Store

logger = get_logger(__name__)


@dataclass
class Stores:
    agents: Store[Agent]
    services: Store[Service]
    payments: Store[Payment]
    tasks: Store[Task]

    @classmethod
    def in_memory(cls) -> Stores:
        return cls(
            agents=InMemoryStore("agent"),
            services=InMemoryStore("service"),
            payments=InMemoryStore("payment"),
            tasks=InMemoryStore("task"),
        )

    @classmethod
    def database(cls, session_factory: async_sessionmaker[AsyncSession]) -> Stores:
        from agent_payment_gateway.infrastructure.database.repositories import (
            AgentRepository,
            PaymentRepository,
            ServiceRepository,
            TaskRepository,
        )

        return cls(
            agents=AgentRepository(session_factory),
            services=ServiceRepository(session_factory),
            payments=PaymentRepository(session_factory),
            tasks=TaskRepository(session_factory),
        )


@dataclass
class Gateway:
    """Everything a request handler needs, wired together."""

    settings: Settings
    stores: Stores
    ledger: LedgerOracle
    supervisor: TaskSupervisor
    registry: RegistryService
    payments: PaymentService
    verification: VerificationService
    execution: ExecutionService
    stats: StatsService
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    async def aclose(self) -> None:
        """Cancel outstanding tasks and release the ledger connection."""
        await self.supervisor.shutdown()
        close = getattr(self.ledger, "aclose", None)
        if close is not None:
            await close()
        logger.info("gateway.closed")


def build_gateway(
    settings: Settings | None = None,
    *,
    stores: Stores | None = None,
    ledger: LedgerOracle | None = None,
    backend: ExecutionBackend | None = None,
) -> Gateway:
    """Wire a Gateway from settings, using any collaborators passed in."""
    settings = settings or get_settings()

    if stores is None:
        if settings.uses_database:
            from agent_payment_gateway.infrastructure.database.engine import (
                get_session_factory,
            )

            stores = Stores.database(get_session_factory())
        else:
            stores = Stores.in_memory()

    if ledger is None:
        ledger = SolanaLedgerClient(
            rpc_url=settings.solana_rpc_url,
            commitment=settings.solana_commitment,
            timeout=settings.ledger_rpc_timeout_seconds,
        )
    if backend is None:
        backend = SimulatedExecutionBackend(settings.task_simulated_delay_seconds)

    started_at = time.monotonic()
    registry = RegistryService(stores.agents, stores.services)
    supervisor = TaskSupervisor(backend, timeout_seconds=settings.task_timeout_seconds)

    return Gateway(
        settings=settings,
        stores=stores,
        ledger=ledger,
        supervisor=supervisor,
        registry=registry,
        payments=PaymentService(stores.payments, registry, settings.solana_network),
        verification=VerificationService(
            stores.payments,
            ledger,
            registry,
            timeout_seconds=settings.verification_timeout_seconds,
            tolerance=settings.underpayment_tolerance,
        ),
        execution=ExecutionService(stores.payments, stores.tasks, registry, supervisor),
        stats=StatsService(
            stores.agents,
            stores.services,
            stores.payments,
            stores.tasks,
            settings.solana_network,
            started_at=started_at,
        ),
        started_at=started_at,
    )
