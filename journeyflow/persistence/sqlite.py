"""SQLite implementation of the state store."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .repository import StateStore


class SQLiteStateStore(StateStore):
    """Persist journey state using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS journey_state (
                state_key TEXT PRIMARY KEY,
                data BLOB NOT NULL,
                updated_at TEXT NOT NULL
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
    async def get_state(self, key: str) -> bytes | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT data FROM journey_state WHERE state_key = ?",
            key,
        )
        if not row:
            return None
        return bytes(row["data"])

    async def set_state(self, key: str, data: bytes) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO journey_state (state_key, data, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(state_key) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
            """,
            key,
            sqlite3.Binary(data),
            datetime.now(timezone.utc).isoformat(),
        )

    async def delete_state(self, key: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "DELETE FROM journey_state WHERE state_key = ?",
            key,
        )

    async def list_keys(self, prefix: str = "") -> list[str]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT state_key FROM journey_state ORDER BY state_key",
        )
        return [r["state_key"] for r in rows if r["state_key"].startswith(prefix)]

    def close(self) -> None:
        self._conn.close()
