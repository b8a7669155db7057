"""Shared test fixtures for the Agent Payment Gateway test suite.

Provides:
    - A scriptable fake ledger oracle and a controllable execution backend
    - A fully wired in-memory Gateway
    - Factory fixtures for agents, services and payments
    - Async test support via pytest-asyncio
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import httpx
import pytest

from agent_payment_gateway.config import Settings
from agent_payment_gateway.domain.ledger_protocol import TransactionRecord
from agent_payment_gateway.gateway import build_gateway
from agent_payment_gateway.main import create_app

PROVIDER_WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
CONSUMER_WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
STRANGER_WALLET = "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH"
SYSTEM_PROGRAM = "11111111111111111111111111111111"


def transfer_record(
    signature: str,
    lamports: int,
    payee: str = PROVIDER_WALLET,
    payer: str = CONSUMER_WALLET,
    succeeded: bool = True,
    slot: int = 250_000_000,
    block_time: int = 1_700_000_000,
) -> TransactionRecord:
    """A native transfer of `lamports` from payer to payee, as the ledger reports it."""
    return TransactionRecord(
        signature=signature,
        succeeded=succeeded,
        error=None if succeeded else {"InstructionError": [0, "Custom"]},
        account_keys=(payer, payee, SYSTEM_PROGRAM),
        pre_balances=(5_000_000_000, 1_000_000_000, 1),
        post_balances=(5_000_000_000 - lamports - 5_000, 1_000_000_000 + lamports, 1),
        slot=slot,
        block_time=block_time,
    )


class FakeLedger:
    """In-process LedgerOracle; returns whatever the test put in `records`."""

    def __init__(self) -> None:
        self.records: dict[str, TransactionRecord] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.delay = 0.0
        self.closed = False

    def add(self, record: TransactionRecord) -> None:
        self.records[record.signature] = record

    async def fetch_transaction(self, signature: str) -> TransactionRecord | None:
        self.calls.append(signature)
        if self.delay:
            await asyncio.sleep(self.delay)
        if signature in self.errors:
            raise self.errors[signature]
        return self.records.get(signature)

    async def aclose(self) -> None:
        self.closed = True


class FakeBackend:
    """ExecutionBackend that finishes when told to, or immediately by default."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.release = asyncio.Event()
        self.release.set()
        self.error: Exception | None = None

    def hold(self) -> None:
        """Block every run until `release.set()`."""
        self.release.clear()

    async def run(self, service, task_input: Any) -> dict:
        self.calls.append((service.id, task_input))
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return {"result": f"done: {service.name}", "input": task_input}


# ---------------------------------------------------------------------------
# Wiring Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        solana_network="devnet",
        verification_timeout_seconds=1.0,
        task_timeout_seconds=1.0,
        task_simulated_delay_seconds=0.0,
    )


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def gateway(settings, ledger, backend):
    gw = build_gateway(settings, ledger=ledger, backend=backend)
    yield gw
    await gw.aclose()


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def provider(gateway):
    """The agent that sells the service and receives payment."""
    return await gateway.registry.register_agent(
        "Summarizer", PROVIDER_WALLET, ["summarize"]
    )


@pytest.fixture
async def consumer(gateway):
    """The agent that buys the service."""
    return await gateway.registry.register_agent("Researcher", CONSUMER_WALLET, ["research"])


@pytest.fixture
async def service(gateway, provider):
    """A 0.001 SOL service offered by `provider`."""
    return await gateway.registry.create_service(
        provider.id, "Summarize text", Decimal("0.001"), description="One paragraph summary"
    )


@pytest.fixture
async def payment(gateway, service, consumer):
    """A pending payment by `consumer` for `service`."""
    created, _ = await gateway.payments.initiate_payment(service.id, consumer.id)
    return created


# ---------------------------------------------------------------------------
# HTTP Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app(gateway):
    return create_app(gateway)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
