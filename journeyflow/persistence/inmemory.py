"""In-memory implementation of the state store."""

from __future__ import annotations

from typing import Dict

from .repository import StateStore


class InMemoryStateStore(StateStore):
    """Store journey state in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, bytes] = {}

    async def get_state(self, key: str) -> bytes | None:
        return self._entries.get(key)

    async def set_state(self, key: str, data: bytes) -> None:
        self._entries[key] = bytes(data)

    async def delete_state(self, key: str) -> None:
        self._entries.pop(key, None)

    async def list_keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._entries if k.startswith(prefix)]

    def clear(self) -> None:
        self._entries.clear()
