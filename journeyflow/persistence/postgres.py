"""PostgreSQL implementation of the state store."""

from __future__ import annotations

import asyncpg

from .repository import StateStore


class PostgresStateStore(StateStore):
    """Persist journey state using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS journey_state (
                state_key TEXT PRIMARY KEY,
                data BYTEA NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )

    # ------------------------------------------------------------------
    async def get_state(self, key: str) -> bytes | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT data FROM journey_state WHERE state_key = $1",
                key,
            )
        finally:
            await conn.close()
        if not row:
            return None
        return bytes(row["data"])

    async def set_state(self, key: str, data: bytes) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO journey_state (state_key, data, updated_at) VALUES ($1, $2, now())
                ON CONFLICT (state_key) DO UPDATE SET data = EXCLUDED.data, updated_at = now()
                """,
                key,
                data,
            )
        finally:
            await conn.close()

    async def delete_state(self, key: str) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                "DELETE FROM journey_state WHERE state_key = $1",
                key,
            )
        finally:
            await conn.close()

    async def list_keys(self, prefix: str = "") -> list[str]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT state_key FROM journey_state ORDER BY state_key"
            )
        finally:
            await conn.close()
        return [r["state_key"] for r in rows if r["state_key"].startswith(prefix)]
