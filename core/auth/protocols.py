"""
Interfaces the token cache depends on.

The store is the single source of truth for cached tokens. It may live in
another process (Redis) or in memory for tests; TTL eviction is always its
responsibility.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

__all__ = ["KeyValueStore", "LoginRoutine"]

LoginRoutine = Callable[[], Awaitable[str]]


class KeyValueStore(Protocol):
    """Async key-value store with per-key expiry."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""
        ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, evicting it after ``ttl_seconds``."""
        ...

    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...
