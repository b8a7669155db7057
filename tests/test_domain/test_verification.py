"""Tests for reconcile(): the ordered rules that turn a ledger record into an outcome."""

from __future__ import annotations

from decimal import Decimal

import pytest

from agent_payment_gateway.domain.enums import Asset, PaymentStatus, VerificationResult
from agent_payment_gateway.domain.ledger_protocol import TransactionRecord
from agent_payment_gateway.domain.models import Payment
from agent_payment_gateway.domain.verification import (
    VerificationOutcome,
    lamports_to_sol,
    minimum_accepted,
    reconcile,
)
from tests.conftest import (
    CONSUMER_WALLET,
    PROVIDER_WALLET,
    STRANGER_WALLET,
    transfer_record,
)


def _payment(amount: str = "0.001", asset: Asset = Asset.SOL) -> Payment:
    return Payment(
        service_id="svc",
        payer_id="payer",
        payer_wallet=CONSUMER_WALLET,
        payee_id="payee",
        payee_wallet=PROVIDER_WALLET,
        asset=asset,
        amount=Decimal(amount),
    )


class TestOrderedRules:
    def test_absent_transaction(self) -> None:
        assert reconcile(_payment(), None).result == VerificationResult.NOT_FOUND_ON_CHAIN

    def test_failed_transaction_wins_over_amount(self) -> None:
        record = transfer_record("sig", 1_000_000, succeeded=False)
        outcome = reconcile(_payment(), record)
        assert outcome.result == VerificationResult.TRANSACTION_FAILED
        assert outcome.error == {"InstructionError": [0, "Custom"]}

    def test_payee_not_involved(self) -> None:
        record = transfer_record("sig", 1_000_000, payee=STRANGER_WALLET)
        assert reconcile(_payment(), record).result == VerificationResult.WRONG_RECIPIENT

    def test_exact_amount(self) -> None:
        outcome = reconcile(_payment(), transfer_record("sig", 1_000_000))
        assert outcome.result == VerificationResult.VERIFIED
        assert outcome.received == Decimal("0.001")

    def test_overpayment_is_accepted(self) -> None:
        outcome = reconcile(_payment(), transfer_record("sig", 2_000_000))
        assert outcome.result == VerificationResult.VERIFIED


class TestUnderpaymentBoundary:
    """Payments within 1% of the expected amount count as paid in full."""

    def test_one_percent_short_is_verified(self) -> None:
        outcome = reconcile(_payment(), transfer_record("sig", 990_000))
        assert outcome.result == VerificationResult.VERIFIED
        assert outcome.received == Decimal("0.00099")

    def test_five_percent_short_is_underpaid(self) -> None:
        outcome = reconcile(_payment(), transfer_record("sig", 950_000))
        assert outcome.result == VerificationResult.UNDERPAID
        assert outcome.received == Decimal("0.00095")

    def test_one_lamport_under_the_threshold(self) -> None:
        outcome = reconcile(_payment(), transfer_record("sig", 989_999))
        assert outcome.result == VerificationResult.UNDERPAID

    def test_custom_tolerance(self) -> None:
        outcome = reconcile(_payment(), transfer_record("sig", 950_000), tolerance=Decimal("0.05"))
        assert outcome.result == VerificationResult.VERIFIED


class TestMissingBalances:
    def test_no_balance_data_counts_as_nothing_received(self) -> None:
        record = TransactionRecord(
            signature="sig",
            succeeded=True,
            account_keys=(CONSUMER_WALLET, PROVIDER_WALLET),
        )
        outcome = reconcile(_payment(), record)
        assert outcome.result == VerificationResult.UNDERPAID
        assert outcome.received == Decimal(0)

    def test_token_payment_skips_amount_check(self) -> None:
        record = TransactionRecord(
            signature="sig",
            succeeded=True,
            account_keys=(CONSUMER_WALLET, PROVIDER_WALLET),
        )
        outcome = reconcile(_payment("5", asset=Asset.USDC), record)
        assert outcome.result == VerificationResult.VERIFIED
        assert outcome.received is None


class TestHelpers:
    def test_lamports_to_sol(self) -> None:
        assert lamports_to_sol(1_500_000_000) == Decimal("1.5")

    @pytest.mark.parametrize(
        ("amount", "expected"),
        [("0.001", Decimal("0.00099")), ("1", Decimal("0.99"))],
    )
    def test_minimum_accepted(self, amount: str, expected: Decimal) -> None:
        assert minimum_accepted(Decimal(amount)) == expected


class TestVerificationOutcome:
    def test_from_payment_serializes_amounts_as_strings(self) -> None:
        payment = _payment()
        payment.status = PaymentStatus.UNDERPAID
        payment.tx_signature = "sig"
        outcome = VerificationOutcome.from_payment(
            payment, VerificationResult.UNDERPAID, received=Decimal("0.00095")
        )
        data = outcome.to_dict()

        assert not outcome.is_verified
        assert data["status"] == "underpaid"
        assert data["expected"] == "0.001"
        assert data["received"] == "0.00095"
        assert data["verified_at"] is None
