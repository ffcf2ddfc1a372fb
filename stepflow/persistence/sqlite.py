"""SQLite implementation of the instance store."""

from __future__ import annotations

import asyncio
import sqlite3
import time
from pathlib import Path
from typing import Any, Optional

from ..contracts import WorkflowInstance
from .repository import InstanceStore, instance_key


class SQLiteInstanceStore(InstanceStore):
    """Persist instance documents in a SQLite key-value table."""

    def __init__(
        self,
        db_path: str | Path,
        key_prefix: str = "instance:",
        ttl_seconds: Optional[int] = None,
    ):
        self.db_path = str(db_path)
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                expires_at REAL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    # ------------------------------------------------------------------
    # Store API
    async def save(self, instance: WorkflowInstance) -> None:
        expires_at = time.time() + self.ttl_seconds if self.ttl_seconds else None
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at
            """,
            instance_key(self.key_prefix, instance.instance_id),
            instance.to_json(),
            expires_at,
        )

    async def load(self, instance_id: str) -> WorkflowInstance | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT value FROM kv_store WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)",
            instance_key(self.key_prefix, instance_id),
            time.time(),
        )
        if not row:
            return None
        return WorkflowInstance.from_json(row["value"])

    async def list_instances(self) -> list[WorkflowInstance]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT value FROM kv_store WHERE key LIKE ? AND (expires_at IS NULL OR expires_at > ?) ORDER BY key",
            f"{self.key_prefix}%",
            time.time(),
        )
        return [WorkflowInstance.from_json(row["value"]) for row in rows]

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)
