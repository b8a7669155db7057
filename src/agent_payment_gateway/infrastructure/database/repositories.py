"""Repository classes for database access.

Each repository implements the Store protocol for one entity type on top of
an async session factory. Every operation runs in its own short transaction;
`update` locks the row with SELECT ... FOR UPDATE so concurrent writers of
the same record are serialized by the database.

Repositories translate between ORM rows and domain dataclasses; nothing
outside this module sees an ORM object.
"""

from __future__ import annotations

import copy
import dataclasses
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlalchemy import select

from agent_payment_gateway.domain.enums import Asset, PaymentStatus, TaskStatus
from agent_payment_gateway.domain.models import Agent, Payment, Service, Task, utcnow
from agent_payment_gateway.infrastructure.database.orm_models import (
    AgentModel,
    Base,
    PaymentModel,
    ServiceModel,
    TaskModel,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

T = TypeVar("T")


class SqlRepository(Generic[T]):
    """Store protocol over one ORM table."""

    model: ClassVar[type[Base]]
    entity: ClassVar[type]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Row <-> entity conversion
    # ------------------------------------------------------------------

    def _to_domain(self, row: Base) -> T:
        values = {
            f.name: copy.deepcopy(getattr(row, f.name))
            for f in dataclasses.fields(self.entity)
        }
        return self.entity(**values)

    def _to_row_values(self, entity: T) -> dict[str, Any]:
        return {
            f.name: copy.deepcopy(getattr(entity, f.name))
            for f in dataclasses.fields(self.entity)
        }

    # ------------------------------------------------------------------
    # Store protocol
    # ------------------------------------------------------------------

    async def create(self, entity: T) -> T:
        """Insert a new record."""
        async with self._session_factory() as session, session.begin():
            session.add(self.model(**self._to_row_values(entity)))
        return entity

    async def get(self, entity_id: str) -> T | None:
        """Fetch a record by id."""
        async with self._session_factory() as session:
            row = await session.get(self.model, entity_id)
            return self._to_domain(row) if row is not None else None

    async def update(self, entity_id: str, mutate: Callable[[T], None]) -> T:
        """Lock the row, apply `mutate` to its domain copy and write it back."""
        async with self._session_factory() as session, session.begin():
            row = await session.get(self.model, entity_id, with_for_update=True)
            if row is None:
                raise KeyError(entity_id)
            entity = self._to_domain(row)
            mutate(entity)
            if hasattr(entity, "updated_at"):
                entity.updated_at = utcnow()
            for name, value in self._to_row_values(entity).items():
                setattr(row, name, value)
        return entity

    async def list(self) -> list[T]:
        """Fetch all records, oldest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(self.model).order_by(self.model.created_at.asc())
            )
            return [self._to_domain(row) for row in result.scalars().all()]


class AgentRepository(SqlRepository[Agent]):
    """Data access for agents."""

    model = AgentModel
    entity = Agent

    def _to_domain(self, row: AgentModel) -> Agent:
        agent = super()._to_domain(row)
        agent.earnings = {asset: Decimal(amount) for asset, amount in row.earnings.items()}
        return agent

    def _to_row_values(self, entity: Agent) -> dict[str, Any]:
        values = super()._to_row_values(entity)
        values["earnings"] = {asset: str(amount) for asset, amount in entity.earnings.items()}
        return values


class ServiceRepository(SqlRepository[Service]):
    """Data access for services."""

    model = ServiceModel
    entity = Service

    def _to_domain(self, row: ServiceModel) -> Service:
        service = super()._to_domain(row)
        service.asset = Asset(row.asset)
        return service


class PaymentRepository(SqlRepository[Payment]):
    """Data access for payments."""

    model = PaymentModel
    entity = Payment

    def _to_domain(self, row: PaymentModel) -> Payment:
        payment = super()._to_domain(row)
        payment.asset = Asset(row.asset)
        payment.status = PaymentStatus(row.status)
        return payment


class TaskRepository(SqlRepository[Task]):
    """Data access for tasks."""

    model = TaskModel
    entity = Task

    def _to_domain(self, row: TaskModel) -> Task:
        task = super()._to_domain(row)
        task.status = TaskStatus(row.status)
        return task
