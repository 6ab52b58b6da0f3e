"""DuckDB-backed keyed store for local holding records."""

from __future__ import annotations

import asyncio
import json
import re
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic

from mtbintake.storage.base import KeyedStore, Predicate, T

try:
    import duckdb
except ImportError:  # pragma: no cover - exercised only when dependency missing
    duckdb = None


_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DuckDBDatabase:
    """Shared DuckDB connection; each operation works on its own cursor.

    All statements hold ``lock``; overlapping DuckDB transactions on one key
    conflict at commit instead of replacing each other.
    """

    def __init__(self, db_path: str | Path) -> None:
        if duckdb is None:
            raise RuntimeError(
                "duckdb is not installed. Add it to requirements before using DuckDB storage."
            )

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = duckdb.connect(str(self.db_path))
        self.lock = threading.Lock()

    def cursor(self) -> Any:
        return self._connection.cursor()

    def close(self) -> None:
        with self.lock:
            self._connection.close()


class DuckDBKeyedStore(KeyedStore[T], Generic[T]):
    """Persist records as JSON payloads in a two-column DuckDB table.

    Statements run in worker threads, one cursor per call, serialized by the
    database lock.
    """

    def __init__(
        self,
        *,
        database: DuckDBDatabase,
        table_name: str,
        key_of: Callable[[T], str],
        to_payload: Callable[[T], dict[str, Any]],
        from_payload: Callable[[dict[str, Any]], T],
    ) -> None:
        if not _TABLE_RE.match(table_name):
            raise ValueError(f"Unsafe table name: {table_name}")

        self.database = database
        self.table_name = table_name
        self.key_of = key_of
        self.to_payload = to_payload
        self.from_payload = from_payload

        with self.database.lock:
            cursor = self.database.cursor()
            try:
                cursor.execute(
                    f"CREATE TABLE IF NOT EXISTS {self.table_name} "
                    "(record_key VARCHAR PRIMARY KEY, payload VARCHAR NOT NULL)"
                )
            finally:
                cursor.close()

    async def save(self, record: T) -> T:
        payload = json.dumps(self.to_payload(record), sort_keys=True)
        await asyncio.to_thread(self._save, self.key_of(record), payload)
        return record

    async def get(self, key: str) -> T | None:
        payload = await asyncio.to_thread(self._get, key)
        return self.from_payload(json.loads(payload)) if payload is not None else None

    async def query(self, predicate: Predicate[T]) -> list[T]:
        payloads = await asyncio.to_thread(self._all)
        records = [self.from_payload(json.loads(payload)) for payload in payloads]
        return [record for record in records if predicate(record)]

    async def delete(self, key: str) -> T | None:
        payload = await asyncio.to_thread(self._delete, key)
        return self.from_payload(json.loads(payload)) if payload is not None else None

    def _save(self, key: str, payload: str) -> None:
        with self.database.lock:
            cursor = self.database.cursor()
            try:
                cursor.execute(
                    f"INSERT OR REPLACE INTO {self.table_name} (record_key, payload) VALUES (?, ?)",
                    [key, payload],
                )
            finally:
                cursor.close()

    def _get(self, key: str) -> str | None:
        with self.database.lock:
            cursor = self.database.cursor()
            try:
                row = cursor.execute(
                    f"SELECT payload FROM {self.table_name} WHERE record_key = ?",
                    [key],
                ).fetchone()
            finally:
                cursor.close()
        return row[0] if row is not None else None

    def _all(self) -> list[str]:
        with self.database.lock:
            cursor = self.database.cursor()
            try:
                rows = cursor.execute(
                    f"SELECT payload FROM {self.table_name} ORDER BY record_key"
                ).fetchall()
            finally:
                cursor.close()
        return [row[0] for row in rows]

    def _delete(self, key: str) -> str | None:
        with self.database.lock:
            cursor = self.database.cursor()
            try:
                cursor.begin()
                row = cursor.execute(
                    f"SELECT payload FROM {self.table_name} WHERE record_key = ?",
                    [key],
                ).fetchone()
                if row is not None:
                    cursor.execute(f"DELETE FROM {self.table_name} WHERE record_key = ?", [key])
                cursor.commit()
            except Exception:
                cursor.rollback()
                raise
            finally:
                cursor.close()
        return row[0] if row is not None else None
