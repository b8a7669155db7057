"""Payment Service - creates payment requests and issues payment instructions.

The gateway never moves funds. Initiating a payment only records what is
owed (payee wallet, asset and amount, all snapshotted from the service) and
tells the payer where to send it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from agent_payment_gateway.domain.exceptions import (
    InvalidArgumentError,
    PaymentNotFoundError,
)
from agent_payment_gateway.domain.models import Payment
from agent_payment_gateway.logging_config import get_logger

if TYPE_CHECKING:
    from decimal import Decimal

    from agent_payment_gateway.domain.enums import Asset
    from agent_payment_gateway.domain.store_protocol import Store
    from agent_payment_gateway.services.registry_service import RegistryService

logger = get_logger(__name__)


@dataclass(frozen=True)
class PaymentInstructions:
    """Human- and machine-readable instructions for paying a payment."""

    pay_to: str
    amount: Decimal
    asset: Asset
    network: str
    memo: str

    @property
    def message(self) -> str:
        return (
            f"Send {self.amount} {self.asset.value} to {self.pay_to} on {self.network}. "
            f"Include memo: {self.memo}"
        )


class PaymentService:
    """Owns the creation side of the payment record store."""

    def __init__(
        self,
        payments: Store[Payment],
        registry: RegistryService,
        network: str,
    ) -> None:
        self._payments = payments
        self._registry = registry
        self._network = network

    async def initiate_payment(
        self,
        service_id: str | None,
        payer_id: str | None,
    ) -> tuple[Payment, PaymentInstructions]:
        """Create a pending payment for a service on behalf of a payer agent."""
        if not service_id or not payer_id:
            raise InvalidArgumentError("service_id and payer_id are required")

        service = await self._registry.get_service(service_id)
        payer = await self._registry.get_agent(payer_id)

        payment = await self._payments.create(
            Payment(
                service_id=service.id,
                payer_id=payer.id,
                payer_wallet=payer.wallet,
                payee_id=service.agent_id,
                payee_wallet=service.pay_to,
                asset=service.asset,
                amount=service.price,
            )
        )

        logger.info(
            "payment.initiated",
            payment_id=payment.id,
            service_id=service.id,
            amount=payment.amount,
            asset=payment.asset,
        )
        return payment, self.instructions_for(payment)

    def instructions_for(self, payment: Payment) -> PaymentInstructions:
        return PaymentInstructions(
            pay_to=payment.payee_wallet,
            amount=payment.amount,
            asset=payment.asset,
            network=self._network,
            memo=payment.memo,
        )

    async def get_payment(self, payment_id: str) -> Payment:
        payment = await self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment

    async def list_payments(self) -> list[Payment]:
        return await self._payments.list()
