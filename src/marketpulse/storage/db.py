"""DuckDB connection, schema init and the DuckDB-backed key-value store."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Mapping

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Opaque key-value store (settings, metrics snapshot, errors, last update)
CREATE TABLE IF NOT EXISTS kv_store (
    key             VARCHAR PRIMARY KEY,
    value           JSON,
    updated_at      BIGINT NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise


class DuckDBStore:
    """Key-value store persisted in a single DuckDB table.

    Opens a short-lived connection per call so several processes (scheduler, API, CLI)
    can take turns on the same file. Values are JSON-encoded; there are no transactions
    spanning calls.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._schema_ready = False

    def _connect(self) -> DuckDBPyConnection:
        conn = get_connection(self.db_path)
        if not self._schema_ready:
            init_schema(conn)
            self._schema_ready = True
        return conn

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        keys = list(keys)
        if not keys:
            return {}
        conn = self._connect()
        try:
            placeholders = ",".join("?" for _ in keys)
            rows = conn.execute(
                f"SELECT key, value FROM kv_store WHERE key IN ({placeholders})",
                keys,
            ).fetchall()
        finally:
            conn.close()
        out: dict[str, Any] = {}
        for key, value in rows:
            out[key] = json.loads(value) if isinstance(value, str) else value
        return out

    async def set(self, items: Mapping[str, Any]) -> None:
        if not items:
            return
        now_ms = int(time.time() * 1000)
        conn = self._connect()
        try:
            for key, value in items.items():
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT (key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    [key, json.dumps(value), now_ms],
                )
        finally:
            conn.close()

    async def clear(self) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM kv_store")
        finally:
            conn.close()
