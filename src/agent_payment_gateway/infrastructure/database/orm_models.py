"""SQLAlchemy 2.0 ORM models for the Agent Payment Gateway.

Four tables:
    1. agents    - Registered agents and their display earnings.
    2. services  - Priced services with the payee wallet snapshot.
    3. payments  - Payment requests and their verification lifecycle.
    4. tasks     - Work admitted by the execution gate.

Design decisions:
    - UUID strings as primary keys (portable across PostgreSQL and SQLite).
    - Decimal for amounts (no floating point rounding errors).
    - Column names match the domain dataclass fields one-to-one, so the
      repositories can copy values across without a mapping table.
    - CHECK constraints on statuses and amounts to reject bad writes at DB level.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal  # noqa: TC003 - needed at runtime by SQLAlchemy Mapped[]
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# 1. agents
# ---------------------------------------------------------------------------
class AgentModel(Base):
    """A registered agent."""

    __tablename__ = "agents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    wallet: Mapped[str] = mapped_column(
        String(44),
        nullable=False,
        comment="Base58 Solana address",
    )
    skills: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    services_offered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    earnings: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Per-asset display aggregate, amounts stored as strings",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (Index("idx_agent_wallet", "wallet"),)


# ---------------------------------------------------------------------------
# 2. services
# ---------------------------------------------------------------------------
class ServiceModel(Base):
    """A priced service offered by an agent."""

    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    agent_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("agents.id"), nullable=False
    )
    agent_name: Mapped[str] = mapped_column(String(200), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    asset: Mapped[str] = mapped_column(String(10), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(20, 9), nullable=False)
    pay_to: Mapped[str] = mapped_column(
        String(44),
        nullable=False,
        comment="Snapshot of the owning agent's wallet at creation time",
    )
    tasks_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_service_positive_price"),
        CheckConstraint("asset IN ('SOL', 'USDC')", name="ck_service_valid_asset"),
        Index("idx_service_agent", "agent_id"),
    )


# ---------------------------------------------------------------------------
# 3. payments
# ---------------------------------------------------------------------------
class PaymentModel(Base):
    """A payment request and its verification state."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    service_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("services.id"), nullable=False
    )
    payer_id: Mapped[str] = mapped_column(String(36), nullable=False)
    payer_wallet: Mapped[str] = mapped_column(String(44), nullable=False)
    payee_id: Mapped[str] = mapped_column(String(36), nullable=False)
    payee_wallet: Mapped[str] = mapped_column(String(44), nullable=False)
    asset: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 9), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="Current lifecycle state (guarded by PaymentStateMachine)",
    )
    tx_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    slot: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    block_time: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    received_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(20, 9),
        nullable=True,
        comment="Amount credited to the payee by the verified transaction",
    )
    verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'not_found', 'failed', 'wrong_recipient', "
            "'underpaid', 'error', 'verified')",
            name="ck_payment_valid_status",
        ),
        CheckConstraint("amount > 0", name="ck_payment_positive_amount"),
        Index("idx_payment_status", "status"),
        Index("idx_payment_service", "service_id"),
        Index("idx_payment_tx_signature", "tx_signature"),
    )

    def __repr__(self) -> str:
        return (
            f"<PaymentModel id={self.id} status={self.status} "
            f"amount={self.amount} {self.asset}>"
        )


# ---------------------------------------------------------------------------
# 4. tasks
# ---------------------------------------------------------------------------
class TaskModel(Base):
    """A task admitted by the execution gate."""

    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    payment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("payments.id"), nullable=False
    )
    service_id: Mapped[str] = mapped_column(String(36), nullable=False)
    service_name: Mapped[str] = mapped_column(String(200), nullable=False)
    payer_id: Mapped[str] = mapped_column(String(36), nullable=False)
    payee_id: Mapped[str] = mapped_column(String(36), nullable=False)
    input: Mapped[Any] = mapped_column(JSON, nullable=True)
    output: Mapped[Any] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="processing",
        comment="Current lifecycle state (guarded by TaskStateMachine)",
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('processing', 'completed', 'abandoned')",
            name="ck_task_valid_status",
        ),
        Index("idx_task_payment", "payment_id"),
        Index("idx_task_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<TaskModel id={self.id} status={self.status}>"
