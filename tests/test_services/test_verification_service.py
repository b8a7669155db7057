"""Tests for VerificationService against a fake ledger.

Covers:
    - Every outcome is written onto the payment
    - Verified is idempotent: no second oracle call, no second credit
    - Negative outcomes stay re-verifiable (not_found -> verified)
    - Oracle failures and timeouts become the `error` outcome
    - Concurrent attempts on one payment cannot clobber a verified result
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from agent_payment_gateway.domain.enums import PaymentStatus, VerificationResult
from agent_payment_gateway.domain.exceptions import (
    InvalidArgumentError,
    LedgerUnavailableError,
    PaymentNotFoundError,
)
from tests.conftest import STRANGER_WALLET, transfer_record


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_verified(self, gateway, ledger, payment, provider) -> None:
        ledger.add(transfer_record("sig-ok", 1_000_000, slot=123, block_time=1_700_000_123))

        outcome = await gateway.verification.verify(payment.id, "sig-ok")

        assert outcome.result == VerificationResult.VERIFIED
        assert outcome.status == PaymentStatus.VERIFIED
        assert outcome.received == Decimal("0.001")
        stored = await gateway.payments.get_payment(payment.id)
        assert stored.status == PaymentStatus.VERIFIED
        assert stored.tx_signature == "sig-ok"
        assert stored.slot == 123
        assert stored.block_time == 1_700_000_123
        assert stored.verified_at is not None

        agent = await gateway.registry.get_agent(provider.id)
        assert agent.earnings == {"SOL": Decimal("0.001")}

    @pytest.mark.asyncio
    async def test_not_found(self, gateway, ledger, payment) -> None:
        outcome = await gateway.verification.verify(payment.id, "sig-missing")
        assert outcome.result == VerificationResult.NOT_FOUND_ON_CHAIN
        assert (await gateway.payments.get_payment(payment.id)).status == PaymentStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_failed(self, gateway, ledger, payment) -> None:
        ledger.add(transfer_record("sig-failed", 1_000_000, succeeded=False))
        outcome = await gateway.verification.verify(payment.id, "sig-failed")
        assert outcome.result == VerificationResult.TRANSACTION_FAILED
        assert outcome.error is not None

    @pytest.mark.asyncio
    async def test_wrong_recipient(self, gateway, ledger, payment) -> None:
        ledger.add(transfer_record("sig-other", 1_000_000, payee=STRANGER_WALLET))
        outcome = await gateway.verification.verify(payment.id, "sig-other")
        assert outcome.status == PaymentStatus.WRONG_RECIPIENT

    @pytest.mark.asyncio
    async def test_underpaid_does_not_credit(self, gateway, ledger, payment, provider) -> None:
        ledger.add(transfer_record("sig-short", 950_000))
        outcome = await gateway.verification.verify(payment.id, "sig-short")

        assert outcome.result == VerificationResult.UNDERPAID
        assert outcome.received == Decimal("0.00095")
        assert (await gateway.registry.get_agent(provider.id)).earnings == {}


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_reverify_skips_the_ledger(self, gateway, ledger, payment, provider) -> None:
        ledger.add(transfer_record("sig-ok", 1_000_000))
        await gateway.verification.verify(payment.id, "sig-ok")

        again = await gateway.verification.verify(payment.id, "sig-ok")

        assert again.result == VerificationResult.VERIFIED
        assert ledger.calls == ["sig-ok"]
        agent = await gateway.registry.get_agent(provider.id)
        assert agent.earnings == {"SOL": Decimal("0.001")}

    @pytest.mark.asyncio
    async def test_reverify_returns_the_recorded_outcome(self, gateway, ledger, payment) -> None:
        ledger.add(transfer_record("sig-ok", 1_000_000, slot=77))
        first = await gateway.verification.verify(payment.id, "sig-ok")

        second = await gateway.verification.verify(payment.id, "sig-ok")

        assert first.to_dict() == second.to_dict()
        assert second.received == Decimal("0.001")
        stored = await gateway.payments.get_payment(payment.id)
        assert stored.received_amount == Decimal("0.001")

    @pytest.mark.asyncio
    async def test_credit_failure_keeps_payment_verified(
        self, gateway, ledger, payment, provider, monkeypatch
    ) -> None:
        async def _broken_credit(*args, **kwargs):
            raise RuntimeError("earnings store down")

        monkeypatch.setattr(gateway.registry, "credit_earnings", _broken_credit)
        ledger.add(transfer_record("sig-ok", 1_000_000))

        outcome = await gateway.verification.verify(payment.id, "sig-ok")

        assert outcome.result == VerificationResult.VERIFIED
        assert (await gateway.payments.get_payment(payment.id)).is_verified
        assert (await gateway.registry.get_agent(provider.id)).earnings == {}

    @pytest.mark.asyncio
    async def test_verified_keeps_original_signature(self, gateway, ledger, payment) -> None:
        ledger.add(transfer_record("sig-ok", 1_000_000))
        await gateway.verification.verify(payment.id, "sig-ok")

        again = await gateway.verification.verify(payment.id, "sig-different")

        assert again.tx_signature == "sig-ok"
        assert (await gateway.payments.get_payment(payment.id)).tx_signature == "sig-ok"

    @pytest.mark.asyncio
    async def test_not_found_then_verified(self, gateway, ledger, payment) -> None:
        first = await gateway.verification.verify(payment.id, "sig-late")
        assert first.status == PaymentStatus.NOT_FOUND

        ledger.add(transfer_record("sig-late", 1_000_000))
        second = await gateway.verification.verify(payment.id, "sig-late")
        assert second.status == PaymentStatus.VERIFIED

    @pytest.mark.asyncio
    async def test_failed_is_repeatable(self, gateway, ledger, payment) -> None:
        ledger.add(transfer_record("sig-failed", 1_000_000, succeeded=False))
        first = await gateway.verification.verify(payment.id, "sig-failed")
        second = await gateway.verification.verify(payment.id, "sig-failed")

        assert first.result == second.result == VerificationResult.TRANSACTION_FAILED
        assert ledger.calls == ["sig-failed", "sig-failed"]


class TestOracleFailures:
    @pytest.mark.asyncio
    async def test_ledger_unavailable(self, gateway, ledger, payment) -> None:
        ledger.errors["sig-x"] = LedgerUnavailableError("RPC node down")

        outcome = await gateway.verification.verify(payment.id, "sig-x")

        assert outcome.result == VerificationResult.VERIFICATION_ERROR
        assert outcome.status == PaymentStatus.ERROR
        assert outcome.error == "RPC node down"

    @pytest.mark.asyncio
    async def test_timeout(self, gateway, ledger, payment) -> None:
        ledger.delay = 5.0

        outcome = await gateway.verification.verify(payment.id, "sig-slow")

        assert outcome.result == VerificationResult.VERIFICATION_ERROR
        assert "timed out" in outcome.error

    @pytest.mark.asyncio
    async def test_error_is_recoverable(self, gateway, ledger, payment) -> None:
        ledger.errors["sig-ok"] = LedgerUnavailableError("RPC node down")
        await gateway.verification.verify(payment.id, "sig-ok")

        del ledger.errors["sig-ok"]
        ledger.add(transfer_record("sig-ok", 1_000_000))
        outcome = await gateway.verification.verify(payment.id, "sig-ok")
        assert outcome.status == PaymentStatus.VERIFIED


class TestArguments:
    @pytest.mark.asyncio
    async def test_unknown_payment_wins_over_missing_signature(self, gateway) -> None:
        with pytest.raises(PaymentNotFoundError):
            await gateway.verification.verify("ghost", None)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("signature", [None, "", "   "])
    async def test_missing_signature(self, gateway, ledger, payment, signature) -> None:
        with pytest.raises(InvalidArgumentError):
            await gateway.verification.verify(payment.id, signature)
        assert ledger.calls == []


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_verifies_credit_once(self, gateway, ledger, payment, provider) -> None:
        ledger.add(transfer_record("sig-ok", 1_000_000))
        ledger.delay = 0.01

        outcomes = await asyncio.gather(
            *(gateway.verification.verify(payment.id, "sig-ok") for _ in range(5))
        )

        assert all(o.status == PaymentStatus.VERIFIED for o in outcomes)
        assert ledger.calls == ["sig-ok"]
        agent = await gateway.registry.get_agent(provider.id)
        assert agent.earnings == {"SOL": Decimal("0.001")}

    @pytest.mark.asyncio
    async def test_slow_failure_cannot_overwrite_verified(self, gateway, ledger, payment) -> None:
        ledger.add(transfer_record("sig-ok", 1_000_000))
        ledger.delay = 0.01

        results = await asyncio.gather(
            gateway.verification.verify(payment.id, "sig-ok"),
            gateway.verification.verify(payment.id, "sig-bogus"),
        )

        assert results[0].status == PaymentStatus.VERIFIED
        stored = await gateway.payments.get_payment(payment.id)
        assert stored.status == PaymentStatus.VERIFIED
        assert stored.tx_signature == "sig-ok"

    @pytest.mark.asyncio
    async def test_allowed_events(self, gateway, ledger, payment) -> None:
        assert "tx_confirmed" in await gateway.verification.get_allowed_events(payment.id)

        ledger.add(transfer_record("sig-ok", 1_000_000))
        await gateway.verification.verify(payment.id, "sig-ok")
        assert await gateway.verification.get_allowed_events(payment.id) == []
