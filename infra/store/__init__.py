"""Key-value stores backing the session token cache."""

from .memory import MemoryStore
from .redis_store import RedisStore

__all__ = ["MemoryStore", "RedisStore"]
