"""In-process key-value store with per-key expiry."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from core.clock import Clock, get_clock

__all__ = ["MemoryStore"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    value: str
    expires_ms: int


class MemoryStore:
    """Dictionary-backed store; expired entries are dropped on read.

    Only shared within one process. Used when no Redis URL is configured,
    and as the fake store in tests (pair it with a ``SimClock``).
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock
        self._data: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    @property
    def clock(self) -> Clock:
        return self._clock or get_clock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if self.clock.now_ms() >= entry.expires_ms:
                del self._data[key]
                logger.debug(f"Evicted expired key {key}")
                return None
            return entry.value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        async with self._lock:
            self._data[key] = _Entry(value, self.clock.now_ms() + ttl_seconds * 1000)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def ttl(self, key: str) -> int | None:
        """Whole seconds left for ``key``, or None if absent/expired."""
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            remaining = entry.expires_ms - self.clock.now_ms()
        return remaining // 1000 if remaining > 0 else None

    def __len__(self) -> int:
        return len(self._data)
