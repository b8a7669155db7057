"""Registry Service - agents and the services they offer.

Simple keyed storage with validation. The payment core only reads from it,
except for the two display aggregates it maintains: an agent's earnings
(credited when a payment verifies) and a service's completed-task counter.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from agent_payment_gateway.domain.enums import AMOUNT_DECIMAL_PLACES, MAX_AMOUNT, Asset
from agent_payment_gateway.domain.exceptions import (
    AgentNotFoundError,
    InvalidArgumentError,
    ServiceNotFoundError,
)
from agent_payment_gateway.domain.models import Agent, Service, is_valid_address
from agent_payment_gateway.logging_config import get_logger

if TYPE_CHECKING:
    from agent_payment_gateway.domain.store_protocol import Store

logger = get_logger(__name__)


class RegistryService:
    """Manages agent registration and service listings."""

    def __init__(self, agents: Store[Agent], services: Store[Service]) -> None:
        self._agents = agents
        self._services = services

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    async def register_agent(
        self,
        name: str | None,
        wallet: str | None,
        skills: list[str] | None = None,
    ) -> Agent:
        """Register an agent with a Solana wallet."""
        if not name or not wallet:
            raise InvalidArgumentError("name and wallet are required")
        if not is_valid_address(wallet):
            raise InvalidArgumentError("Invalid Solana wallet address")

        agent = await self._agents.create(
            Agent(name=name, wallet=wallet, skills=list(skills or []))
        )
        logger.info("agent.registered", agent_id=agent.id, wallet=wallet[:8])
        return agent

    async def get_agent(self, agent_id: str) -> Agent:
        agent = await self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    async def list_agents(self) -> list[Agent]:
        return await self._agents.list()

    async def credit_earnings(self, agent_id: str, asset: Asset, amount: Decimal) -> Agent:
        """Add `amount` to an agent's display earnings for `asset`.

        This is a reporting aggregate only; it never authorizes spending.
        """

        def _credit(agent: Agent) -> None:
            agent.earnings[asset.value] = agent.earnings.get(asset.value, Decimal(0)) + amount

        try:
            agent = await self._agents.update(agent_id, _credit)
        except KeyError as err:
            raise AgentNotFoundError(agent_id) from err
        logger.info("agent.earnings_credited", agent_id=agent_id, asset=asset, amount=amount)
        return agent

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    async def create_service(
        self,
        agent_id: str | None,
        name: str | None,
        price: Decimal | str | float | None,
        asset: Asset | str = Asset.SOL,
        description: str = "",
    ) -> Service:
        """List a priced service; the payee wallet is snapshotted from the agent."""
        if not agent_id or not name or price is None:
            raise InvalidArgumentError("agent_id, name and price are required")
        try:
            asset = Asset(asset)
        except ValueError as err:
            raise InvalidArgumentError(f"Unsupported asset: {asset}") from err
        try:
            price = Decimal(str(price))
        except InvalidOperation as err:
            raise InvalidArgumentError(f"Invalid price: {price}") from err
        if not price.is_finite() or price <= 0:
            raise InvalidArgumentError("price must be greater than zero")
        if price.normalize().as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
            raise InvalidArgumentError(
                f"price supports at most {AMOUNT_DECIMAL_PLACES} decimal places"
            )
        if price >= MAX_AMOUNT:
            raise InvalidArgumentError(f"price must be less than {MAX_AMOUNT}")

        agent = await self.get_agent(agent_id)

        service = await self._services.create(
            Service(
                agent_id=agent.id,
                agent_name=agent.name,
                name=name,
                description=description or "",
                asset=asset,
                price=price,
                pay_to=agent.wallet,
            )
        )

        def _bump(a: Agent) -> None:
            a.services_offered += 1

        await self._agents.update(agent.id, _bump)

        logger.info(
            "service.created",
            service_id=service.id,
            agent_id=agent.id,
            price=price,
            asset=asset,
        )
        return service

    async def get_service(self, service_id: str) -> Service:
        service = await self._services.get(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service

    async def list_services(self) -> list[Service]:
        return await self._services.list()

    async def record_task_completed(self, service_id: str) -> Service:
        """Increment a service's completed-task counter."""

        def _bump(service: Service) -> None:
            service.tasks_completed += 1

        try:
            return await self._services.update(service_id, _bump)
        except KeyError as err:
            raise ServiceNotFoundError(service_id) from err
