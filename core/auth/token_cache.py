"""
Session token cache in front of the broker login.

A cached token is served straight from the store. On a miss the injected
login routine runs (consuming one TOTP window upstream), and its result is
written back with a 23-hour TTL, one hour under the broker's 24-hour session
lifetime.

Without single-flight, concurrent misses each call ``login()``; the broker
accepts several live sessions, so this only costs upstream calls. With
``single_flight=True`` concurrent misses on the same key inside this process
share one login.
"""

from __future__ import annotations

import asyncio
import logging

from core.auth.exceptions import AuthenticationError
from core.auth.protocols import KeyValueStore, LoginRoutine

__all__ = ["TOKEN_TTL_SECONDS", "TokenCache"]

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 23 * 60 * 60


class TokenCache:
    """Token lookup with login-on-miss.

    Args:
        store: Key-value store holding tokens; enforces TTL eviction.
        login: Coroutine function performing the authenticated handshake.
        ttl_seconds: Lifetime given to freshly stored tokens.
        single_flight: Share one in-flight login between concurrent misses
            on the same key.

    Example:
        >>> cache = TokenCache(MemoryStore(), client.login_with_totp)
        >>> token = await cache.get_token("angel_token")
    """

    def __init__(
        self,
        store: KeyValueStore,
        login: LoginRoutine,
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        single_flight: bool = False,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._store = store
        self._login = login
        self.ttl_seconds = ttl_seconds
        self.single_flight = single_flight
        self._inflight: dict[str, asyncio.Task[str]] = {}
        self.login_count = 0

    async def get_token(self, account_key: str) -> str:
        """Return the cached token for ``account_key``, logging in on a miss.

        Raises:
            AuthenticationError: If the login routine rejects the credentials
                or returns an empty token. The store is left untouched.
        """
        cached = await self._store.get(account_key)
        if cached:
            logger.debug(f"Token cache HIT: {account_key}")
            return cached

        if not self.single_flight:
            return await self._refresh(account_key)

        task = self._inflight.get(account_key)
        if task is None or task.done():
            task = asyncio.create_task(self._refresh_shared(account_key))
            self._inflight[account_key] = task
            task.add_done_callback(lambda t: self._forget(account_key, t))
        else:
            logger.debug(f"Joining in-flight login for {account_key}")

        # shield: one cancelled waiter must not abort the login for the others
        return await asyncio.shield(task)

    def _forget(self, account_key: str, task: asyncio.Task[str]) -> None:
        if self._inflight.get(account_key) is task:
            del self._inflight[account_key]
        # every waiter may have been cancelled; mark the failure as retrieved
        if not task.cancelled():
            task.exception()

    async def _refresh_shared(self, account_key: str) -> str:
        # a login that finished while this caller was reading the store has
        # already left _inflight; its token is in the store by now
        cached = await self._store.get(account_key)
        if cached:
            logger.debug(f"Token stored by a concurrent login: {account_key}")
            return cached
        return await self._refresh(account_key)

    async def _refresh(self, account_key: str) -> str:
        logger.info(f"Token cache MISS: {account_key}, logging in")
        self.login_count += 1
        try:
            token = await self._login()
        except AuthenticationError as e:
            logger.warning(f"Login failed for {account_key}: {e.message}")
            raise

        if not token:
            raise AuthenticationError("login returned an empty token", account_key)

        await self._store.put(account_key, token, self.ttl_seconds)
        logger.info(f"Stored new token for {account_key} (ttl={self.ttl_seconds}s)")
        return token

    async def clear(self, account_key: str) -> None:
        """Evict the token for ``account_key`` so the next call logs in."""
        await self._store.delete(account_key)
        logger.info(f"Token cache cleared: {account_key}")
