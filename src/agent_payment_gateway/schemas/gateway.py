"""Pydantic schemas for the gateway REST API.

These schemas define the request/response shapes for the HTTP layer. They
are separate from the domain dataclasses so the wire format can evolve
without touching the services.

Request fields that the services validate (ids, signatures, prices) are
optional here on purpose: the services decide between 404 and 400, and a
missing body field must not pre-empt a missing-entity check.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agent_payment_gateway.domain.enums import Asset, PaymentStatus, TaskStatus

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class RegisterAgentRequest(BaseModel):
    """Request body for registering an agent."""

    name: str | None = Field(default=None, max_length=200, examples=["Summarizer"])
    wallet: str | None = Field(
        default=None,
        description="Solana address (base58) that receives this agent's earnings",
        examples=["9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"],
    )
    skills: list[str] = Field(default_factory=list, examples=[["summarize", "translate"]])


class CreateServiceRequest(BaseModel):
    """Request body for listing a priced service."""

    agent_id: str | None = None
    name: str | None = Field(default=None, max_length=200, examples=["Summarize text"])
    description: str = Field(default="", max_length=5000)
    price: Decimal | None = Field(
        default=None,
        description="Price in units of `asset` (SOL, not lamports)",
        examples=["0.001"],
    )
    asset: str = Field(default=Asset.SOL.value, examples=["SOL"])


class InitiatePaymentRequest(BaseModel):
    """Request body for initiating a payment for a service."""

    service_id: str | None = None
    payer_id: str | None = None


class VerifyPaymentRequest(BaseModel):
    """Request body for verifying a payment against the ledger."""

    tx_signature: str | None = Field(
        default=None,
        description="Signature of the on-chain transfer the payer claims pays this payment",
    )


class ExecuteTaskRequest(BaseModel):
    """Request body for executing a task against a verified payment."""

    payment_id: str | None = None
    input: Any = Field(default=None, description="Opaque task input passed to the service")


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class AgentResponse(BaseModel):
    """A registered agent."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    wallet: str
    skills: list[str]
    services_offered: int
    earnings: dict[str, Decimal]
    created_at: datetime


class ServiceResponse(BaseModel):
    """A priced service."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    agent_id: str
    agent_name: str
    name: str
    description: str
    asset: Asset
    price: Decimal
    pay_to: str
    tasks_completed: int
    created_at: datetime


class PaymentResponse(BaseModel):
    """Full payment record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    service_id: str
    payer_id: str
    payer_wallet: str
    payee_id: str
    payee_wallet: str
    asset: Asset
    amount: Decimal
    status: PaymentStatus
    memo: str
    tx_signature: str | None
    slot: int | None
    block_time: int | None
    received_amount: Decimal | None
    verified_at: datetime | None
    created_at: datetime
    updated_at: datetime


class PaymentInstructionsResponse(BaseModel):
    """Where and how much to pay."""

    model_config = ConfigDict(from_attributes=True)

    pay_to: str
    amount: Decimal
    asset: Asset
    network: str
    memo: str
    message: str


class InitiatePaymentResponse(BaseModel):
    """Response for a newly initiated payment."""

    payment_id: str
    status: PaymentStatus
    instructions: PaymentInstructionsResponse


class PaymentStatusResponse(BaseModel):
    """Lightweight status check for polling."""

    payment_id: str
    status: PaymentStatus
    tx_signature: str | None
    allowed_events: list[str]


class VerificationResponse(BaseModel):
    """Outcome of a verification attempt."""

    payment_id: str
    result: str
    status: PaymentStatus
    verified: bool
    tx_signature: str | None
    message: str
    asset: Asset
    expected: Decimal
    received: Decimal | None = None
    slot: int | None = None
    block_time: int | None = None
    verified_at: datetime | None = None
    error: Any = None


class TaskResponse(BaseModel):
    """Full task record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    payment_id: str
    service_id: str
    service_name: str
    payer_id: str
    payee_id: str
    status: TaskStatus
    input: Any
    output: Any
    error: str | None
    created_at: datetime
    completed_at: datetime | None


class TaskDispatchResponse(BaseModel):
    """Response for an admitted task; poll GET /tasks/{id} for the result."""

    task_id: str
    payment_id: str
    status: TaskStatus
    message: str


class StatsResponse(BaseModel):
    """Gateway-wide earnings and activity."""

    model_config = ConfigDict(from_attributes=True)

    network: str
    agents: int
    services: int
    payments_total: int
    payments_verified: int
    settled: dict[str, Decimal]
    tasks_total: int
    tasks_processing: int
    tasks_completed: int
    tasks_abandoned: int
    uptime_seconds: float


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    network: str
    storage: str
    agents: int
    services: int
    payments: int
    running_tasks: int
    uptime_seconds: float
