"""Persistence layer for journey instance state."""

from __future__ import annotations

import os
from typing import Optional

from ..config import JourneyFlowConfig, load_config
from .inmemory import InMemoryStateStore
from .models import StoreEntry
from .repository import StateStore
from .sqlite import SQLiteStateStore

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresStateStore
except ImportError:  # pragma: no cover - optional dependency
    PostgresStateStore = None  # type: ignore

_store_instance: StateStore | None = None


def get_store(
    database_url: Optional[str] = None, config: Optional[JourneyFlowConfig] = None
) -> StateStore:
    """Factory function to obtain a state store.

    The backend is selected from ``database_url`` which can be provided
    explicitly, via environment variable ``JOURNEYFLOW_DATABASE_URL``, or from
    loaded configuration. A ``store.backend`` of ``redis`` selects Redis. When
    nothing is configured, an in-memory store is returned.
    """

    global _store_instance
    if _store_instance is not None and database_url is None and config is None:
        return _store_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("JOURNEYFLOW_DATABASE_URL")
        or config.database_url
    )

    if database_url:
        _store_instance = _store_from_url(database_url)
    elif config.store.backend == "redis":
        from .redis import RedisStateStore

        redis_conf = config.store.redis
        _store_instance = RedisStateStore(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
            ttl_seconds=redis_conf.ttl_seconds,
        )
    elif config.store.backend == "inmemory":
        _store_instance = InMemoryStateStore()
    else:
        raise ValueError(
            f"Store backend '{config.store.backend}' requires a database_url"
        )

    return _store_instance


def _store_from_url(database_url: str) -> StateStore:
    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        return SQLiteStateStore(path)
    if database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        if PostgresStateStore is None:
            raise RuntimeError("Postgres support not available")
        return PostgresStateStore(database_url)
    raise ValueError(f"Unsupported database backend: {database_url}")


def reset_store() -> None:
    """Forget the cached store so the next ``get_store`` call rebuilds it."""
    global _store_instance
    _store_instance = None


__all__ = [
    "StoreEntry",
    "StateStore",
    "InMemoryStateStore",
    "SQLiteStateStore",
    "PostgresStateStore",
    "get_store",
    "reset_store",
]
