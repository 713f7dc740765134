"""
Redis-backed key-value store.

Redis is the source of truth for session tokens when the gateway runs as
several processes: every instance sees the same token and Redis performs the
TTL eviction (``SETEX``).
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

__all__ = ["RedisStore"]

logger = logging.getLogger(__name__)


class RedisStore:
    """Async key-value store on top of ``redis.asyncio``.

    Args:
        client: A configured ``redis.asyncio.Redis`` client.
        namespace: Prefix applied to every key.
    """

    def __init__(self, client: redis.Redis, namespace: str = "tradesense:") -> None:
        self._client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "tradesense:") -> RedisStore:
        return cls(redis.from_url(url, decode_responses=True), namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> str | None:
        value = await self._client.get(self._key(key))
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        await self._client.setex(self._key(key), ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
