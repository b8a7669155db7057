"""Tests for StatsService: aggregates are always recomputed from the stores."""

from __future__ import annotations

import time
from decimal import Decimal

import pytest

from agent_payment_gateway.services.stats_service import StatsService
from tests.conftest import transfer_record


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_empty_gateway(self, gateway) -> None:
        stats = await gateway.stats.snapshot()

        assert stats.network == "devnet"
        assert stats.agents == stats.services == stats.payments_total == 0
        assert stats.settled == {}

    @pytest.mark.asyncio
    async def test_reflects_latest_writes(self, gateway, ledger, payment, service, consumer) -> None:
        await gateway.payments.initiate_payment(service.id, consumer.id)
        before = await gateway.stats.snapshot()
        assert before.agents == 2
        assert before.services == 1
        assert before.payments_total == 2
        assert before.payments_verified == 0

        ledger.add(transfer_record("sig-ok", 1_000_000))
        await gateway.verification.verify(payment.id, "sig-ok")
        await gateway.execution.execute(payment.id)
        await gateway.supervisor.join()

        after = await gateway.stats.snapshot()
        assert after.payments_verified == 1
        assert after.settled == {"SOL": Decimal("0.001")}
        assert after.tasks_total == 1
        assert after.tasks_completed == 1
        assert after.tasks_processing == 0

    @pytest.mark.asyncio
    async def test_reports_uptime(self, gateway) -> None:
        stats = await gateway.stats.snapshot()
        assert 0 <= stats.uptime_seconds <= gateway.uptime_seconds + 0.001

    @pytest.mark.asyncio
    async def test_uptime_counts_from_start(self, gateway) -> None:
        service = StatsService(
            gateway.stores.agents,
            gateway.stores.services,
            gateway.stores.payments,
            gateway.stores.tasks,
            "devnet",
            started_at=time.monotonic() - 120,
        )

        stats = await service.snapshot()

        assert stats.uptime_seconds >= 120
