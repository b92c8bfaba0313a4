"""Byte-store abstraction backing journey instance state."""

from __future__ import annotations

from typing import Protocol


class StateStore(Protocol):
    """Protocol for opaque key/value state persistence backends."""

    async def get_state(self, key: str) -> bytes | None:
        """Return the bytes stored under ``key``, if any."""

    async def set_state(self, key: str, data: bytes) -> None:
        """Create or overwrite the entry under ``key``."""

    async def delete_state(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""

    async def list_keys(self, prefix: str = "") -> list[str]:
        """Return all keys starting with ``prefix``."""
