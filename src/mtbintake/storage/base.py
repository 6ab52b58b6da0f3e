"""Keyed store contract shared by all local record stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Predicate = Callable[[T], bool]


class KeyedStore(ABC, Generic[T]):
    """Asynchronous upsert-by-key repository for one record type.

    Keys are derived from records, so a second ``save`` for the same key
    replaces the first.
    """

    @abstractmethod
    async def save(self, record: T) -> T:
        """Insert or replace ``record`` under its key."""

    @abstractmethod
    async def get(self, key: str) -> T | None:
        """Return the record stored under ``key``."""

    @abstractmethod
    async def query(self, predicate: Predicate[T]) -> list[T]:
        """Return every stored record matching ``predicate``."""

    @abstractmethod
    async def delete(self, key: str) -> T | None:
        """Remove ``key`` and return its prior record, if any."""
