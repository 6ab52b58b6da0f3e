"""In-memory keyed store."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic

from mtbintake.storage.base import KeyedStore, Predicate, T


class InMemoryKeyedStore(KeyedStore[T], Generic[T]):
    """Dictionary-backed store, mainly for tests and ephemeral runs."""

    def __init__(self, key_of: Callable[[T], str]) -> None:
        self.key_of = key_of
        self._records: dict[str, T] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def save(self, record: T) -> T:
        self._records[self.key_of(record)] = record
        return record

    async def get(self, key: str) -> T | None:
        return self._records.get(key)

    async def query(self, predicate: Predicate[T]) -> list[T]:
        return [record for record in self._records.values() if predicate(record)]

    async def delete(self, key: str) -> T | None:
        return self._records.pop(key, None)
