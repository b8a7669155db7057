"""Process-local store backend.

The default backend (STORAGE_BACKEND=memory). Records live in a dict keyed by
id; every read hands out a deep copy so callers can never mutate stored state
except through `update`.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Generic, TypeVar

from agent_payment_gateway.domain.models import utcnow
from agent_payment_gateway.infrastructure.locks import KeyedLock

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


class InMemoryStore(Generic[T]):
    """Dict-backed implementation of the Store protocol."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._items: dict[str, T] = {}
        self._locks = KeyedLock()

    async def create(self, entity: T) -> T:
        """Insert a new record. Ids are never reused."""
        entity_id = entity.id  # type: ignore[attr-defined]
        if entity_id in self._items:
            raise ValueError(f"Duplicate {self.name} id: {entity_id}")
        self._items[entity_id] = copy.deepcopy(entity)
        return copy.deepcopy(entity)

    async def get(self, entity_id: str) -> T | None:
        item = self._items.get(entity_id)
        return copy.deepcopy(item) if item is not None else None

    async def update(self, entity_id: str, mutate: Callable[[T], None]) -> T:
        """Apply `mutate` to a copy and swap it in only if it succeeds."""
        async with self._locks.hold(entity_id):
            current = self._items.get(entity_id)
            if current is None:
                raise KeyError(entity_id)
            draft = copy.deepcopy(current)
            mutate(draft)
            if hasattr(draft, "updated_at"):
                draft.updated_at = utcnow()
            self._items[entity_id] = draft
            return copy.deepcopy(draft)

    async def list(self) -> list[T]:
        """Return all records in insertion order."""
        return [copy.deepcopy(item) for item in self._items.values()]

    def __len__(self) -> int:
        return len(self._items)
