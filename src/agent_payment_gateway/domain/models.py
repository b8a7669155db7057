"""Domain entities for the Agent Payment Gateway.

Plain dataclasses with zero framework dependencies. Stores hand out copies of
these; the only way to change a stored record is through the store's
`update(id, mutate)` operation.

Design decisions:
    - Decimal for amounts (no floating point rounding errors).
    - Payee wallet and price are SNAPSHOTS taken when the service/payment is
      created, so later profile edits never change the terms of a payment.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from agent_payment_gateway.domain.enums import Asset, PaymentStatus, TaskStatus

# Solana address pattern (base58, 32-44 chars)
SOLANA_ADDRESS_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_address(value: str | None) -> bool:
    """Return True if `value` is a syntactically valid Solana address."""
    return bool(value) and SOLANA_ADDRESS_PATTERN.fullmatch(value) is not None


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Agent:
    """A registered agent that can offer or consume services."""

    name: str
    wallet: str
    skills: list[str] = field(default_factory=list)
    services_offered: int = 0
    earnings: dict[str, Decimal] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Service:
    """A priced service offered by an agent."""

    agent_id: str
    agent_name: str
    name: str
    asset: Asset
    price: Decimal
    pay_to: str
    description: str = ""
    tasks_completed: int = 0
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Payment:
    """A payment request and its verification lifecycle."""

    service_id: str
    payer_id: str
    payer_wallet: str
    payee_id: str
    payee_wallet: str
    asset: Asset
    amount: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    tx_signature: str | None = None
    slot: int | None = None
    block_time: int | None = None
    received_amount: Decimal | None = None
    verified_at: datetime | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def memo(self) -> str:
        """Correlation token the payer is asked to attach to the transfer."""
        return f"payment:{self.id}"

    @property
    def is_verified(self) -> bool:
        return self.status == PaymentStatus.VERIFIED


@dataclass
class Task:
    """A unit of work admitted by the execution gate."""

    payment_id: str
    service_id: str
    service_name: str
    payer_id: str
    payee_id: str
    input: Any = None
    output: Any = None
    status: TaskStatus = TaskStatus.PROCESSING
    error: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
