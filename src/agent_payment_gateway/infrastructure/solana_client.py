"""Solana ledger oracle over JSON-RPC.

Implements the LedgerOracle protocol with a single `getTransaction` call.
Uses raw httpx instead of solana-py; every RPC method is plain JSON-RPC 2.0.

Anything that prevents a definitive answer (transport errors, HTTP errors,
RPC error objects, malformed payloads) is raised as LedgerUnavailableError,
which the verification service reports as a retryable `error` outcome.
A `null` result is a definitive answer: the transaction is not on-chain.
"""

from __future__ import annotations

from typing import Any

import httpx

from agent_payment_gateway.domain.exceptions import LedgerUnavailableError
from agent_payment_gateway.domain.ledger_protocol import TransactionRecord
from agent_payment_gateway.logging_config import get_logger

logger = get_logger(__name__)


class SolanaLedgerClient:
    """Async Solana JSON-RPC client that fetches transaction records."""

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.commitment = commitment
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0

    async def _rpc(self, method: str, params: list[Any] | None = None) -> Any:
        """Make a JSON-RPC call and return its `result` field."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }
        try:
            resp = await self._client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise LedgerUnavailableError(
                f"Solana RPC {method} failed: {exc.__class__.__name__}: {exc}"
            ) from exc
        except ValueError as exc:
            raise LedgerUnavailableError(
                f"Solana RPC {method} returned invalid JSON"
            ) from exc

        if not isinstance(data, dict):
            raise LedgerUnavailableError(f"Solana RPC {method} returned a non-object")
        if "error" in data:
            error = data["error"] or {}
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise LedgerUnavailableError(
                error.get("message", "Unknown RPC error"),
                details=error,
            )
        return data.get("result")

    async def fetch_transaction(self, signature: str) -> TransactionRecord | None:
        """Fetch a confirmed transaction; None if the ledger doesn't know it."""
        result = await self._rpc(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "json",
                    "commitment": self.commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        if result is None:
            logger.info("ledger.transaction_absent", signature=signature)
            return None
        return parse_transaction(signature, result)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _account_keys(message: dict, meta: dict) -> tuple[str, ...]:
    """Static keys followed by v0 loaded addresses, matching balance order."""
    keys = [
        key["pubkey"] if isinstance(key, dict) else key
        for key in message.get("accountKeys") or message.get("staticAccountKeys") or []
    ]
    loaded = meta.get("loadedAddresses") or {}
    keys.extend(loaded.get("writable") or [])
    keys.extend(loaded.get("readonly") or [])
    return tuple(keys)


def parse_transaction(signature: str, result: dict) -> TransactionRecord:
    """Convert a `getTransaction` result into a TransactionRecord."""
    try:
        meta = result["meta"]
        message = result["transaction"]["message"]
        if meta is None:
            raise KeyError("meta")
        return TransactionRecord(
            signature=signature,
            succeeded=meta.get("err") is None,
            error=meta.get("err"),
            account_keys=_account_keys(message, meta),
            pre_balances=tuple(int(b) for b in meta.get("preBalances") or []),
            post_balances=tuple(int(b) for b in meta.get("postBalances") or []),
            slot=result.get("slot"),
            block_time=result.get("blockTime"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise LedgerUnavailableError(
            f"Malformed getTransaction result for {signature}",
            details={"missing": str(exc)},
        ) from exc
