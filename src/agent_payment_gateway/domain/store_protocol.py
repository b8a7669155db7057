"""Store Protocol shared by every entity type.

Each entity (Agent, Service, Payment, Task) is kept behind a store with the
same four operations, so the in-memory backend and the SQL backend are
interchangeable.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, TypeVar

T = TypeVar("T")


class Store(Protocol[T]):
    """Keyed storage for one entity type.

    `update` is the only mutation after creation. It loads the record, applies
    `mutate` to it and writes it back atomically with respect to other updates
    of the same id. If `mutate` raises, nothing is written. Updating an
    unknown id raises KeyError.
    """

    async def create(self, entity: T) -> T: ...

    async def get(self, entity_id: str) -> T | None: ...

    async def update(self, entity_id: str, mutate: Callable[[T], None]) -> T: ...

    async def list(self) -> list[T]: ...
