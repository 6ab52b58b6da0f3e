"""Local keyed stores holding case files that are not (yet) forwarded."""

from .base import KeyedStore
from .duckdb_store import DuckDBDatabase, DuckDBKeyedStore
from .local import LocalDataFacade
from .memory import InMemoryKeyedStore

__all__ = [
    "KeyedStore",
    "InMemoryKeyedStore",
    "DuckDBDatabase",
    "DuckDBKeyedStore",
    "LocalDataFacade",
]
