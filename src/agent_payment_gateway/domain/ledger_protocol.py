"""Ledger Oracle Protocol.

Defines the single capability the gateway needs from a public ledger:
fetching the authoritative record of a transaction. This is a Protocol
(structural subtyping) so concrete clients and test fakes don't need to
inherit from a base class.

The domain layer has ZERO imports from httpx or any RPC library.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class TransactionRecord:
    """Authoritative on-chain record of a transaction.

    Attributes:
        signature: The transaction identifier.
        succeeded: False when the ledger reports an execution error.
        error: The ledger's error payload, if any.
        account_keys: Every address involved, in ledger order.
        pre_balances: Native balances (lamports) before, aligned to account_keys.
        post_balances: Native balances (lamports) after, aligned to account_keys.
        slot: Ledger ordering marker.
        block_time: Unix timestamp of the block, if known.
    """

    signature: str
    succeeded: bool
    account_keys: tuple[str, ...] = ()
    pre_balances: tuple[int, ...] = ()
    post_balances: tuple[int, ...] = ()
    slot: int | None = None
    block_time: int | None = None
    error: object | None = None

    def involves(self, address: str) -> bool:
        return address in self.account_keys

    def balance_delta(self, address: str) -> int | None:
        """Return post - pre native balance for `address`, or None if unknown."""
        if address not in self.account_keys:
            return None
        idx = self.account_keys.index(address)
        if idx >= len(self.pre_balances) or idx >= len(self.post_balances):
            return None
        return self.post_balances[idx] - self.pre_balances[idx]


@runtime_checkable
class LedgerOracle(Protocol):
    """Protocol that all ledger clients must satisfy.

    Concrete implementations:
        - infrastructure/solana_client.py  (Solana JSON-RPC over httpx)
    """

    async def fetch_transaction(self, signature: str) -> TransactionRecord | None:
        """Fetch a transaction by signature.

        Returns:
            The TransactionRecord, or None if the ledger has no such transaction.

        Raises:
            LedgerUnavailableError: On transient failures (network, timeout, RPC).
        """
        ...
