"""Redis implementation of the state store."""

from __future__ import annotations

from typing import Any, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from .repository import StateStore


class RedisStateStore(StateStore):
    """Persist journey state in Redis, optionally expiring idle entries."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        namespace: str = "journeyflow",
    ) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisStateStore")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace
        self._redis: Optional[Any] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def _client(self) -> Any:
        if not self._redis:
            await self.connect()
        return self._redis

    async def get_state(self, key: str) -> bytes | None:
        client = await self._client()
        return await client.get(self._key(key))

    async def set_state(self, key: str, data: bytes) -> None:
        client = await self._client()
        await client.set(self._key(key), data, ex=self.ttl_seconds)

    async def delete_state(self, key: str) -> None:
        client = await self._client()
        await client.delete(self._key(key))

    async def list_keys(self, prefix: str = "") -> list[str]:
        client = await self._client()
        namespace = f"{self.namespace}:"
        keys: list[str] = []
        async for raw in client.scan_iter(match=f"{namespace}*"):
            key = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            key = key[len(namespace):]
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)
