"""
Market gateway: the composition root behind the CLI.

Wires the SmartAPI client, the token cache and the NSE feed together and
exposes the market operations: quote, candle indicators
(VWAP + RSI), India VIX and health.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from core.auth import KeyValueStore, TokenCache, TOTPGenerator
from core.clock import Clock, get_clock
from core.entities import Candle
from core.indicators import IndicatorResult, compute_indicators
from core.market import Quote, VixSnapshot
from infra.brokers import AngelOneClient, AngelOneConfig, BrokerError, MarketDataError
from infra.feeds import CandleSource, NseIndexFeed
from infra.store import MemoryStore, RedisStore

from .config import GatewayConfig
from .models import HealthStatus

__all__ = ["MarketGateway", "NO_CANDLES_MESSAGE"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_CANDLES_MESSAGE = "No candle data yet — market may be closed"


class MarketGateway:
    """Authenticated market-data operations with a cached broker session.

    Args:
        client: SmartAPI client (its ``login_with_totp`` is the login routine)
        store: Key-value store backing the token cache
        config: Gateway settings (loads from env if None)
        vix_feed: NSE index feed (created on demand if None)
        clock: Time source for the candle session window
        candle_source: Where session candles come from (defaults to ``client``)
    """

    def __init__(
        self,
        client: AngelOneClient,
        store: KeyValueStore,
        config: GatewayConfig | None = None,
        vix_feed: NseIndexFeed | None = None,
        clock: Clock | None = None,
        candle_source: CandleSource | None = None,
    ) -> None:
        self.config = config or GatewayConfig()
        self.client = client
        self.candle_source: CandleSource = candle_source or client
        self.store = store
        self.vix_feed = vix_feed or NseIndexFeed(rest_timeout=client.config.rest_timeout)
        self._clock = clock
        self.tokens = TokenCache(
            store,
            client.login_with_totp,
            ttl_seconds=self.config.token_ttl_seconds,
            single_flight=self.config.token_single_flight,
        )

    @classmethod
    def from_env(cls) -> MarketGateway:
        """Build a gateway from environment variables / ``.env``."""
        config = GatewayConfig()
        store: KeyValueStore
        if config.redis_url:
            store = RedisStore.from_url(config.redis_url)
            logger.info("Token store: redis")
        else:
            store = MemoryStore()
            logger.info("Token store: in-memory")
        client = AngelOneClient(AngelOneConfig(), totp=TOTPGenerator())
        return cls(client, store, config)

    async def __aenter__(self) -> MarketGateway:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()
        await self.vix_feed.close()
        if isinstance(self.store, RedisStore):
            await self.store.close()

    @property
    def clock(self) -> Clock:
        return self._clock or get_clock()

    # ------------------------------------------------------------------
    # Session token
    # ------------------------------------------------------------------

    async def token(self) -> str:
        return await self.tokens.get_token(self.config.token_key)

    async def _with_token(self, call: Callable[[str], Awaitable[T]]) -> T:
        """Run ``call(token)``; on 401/403 drop the cached token and retry once.

        SmartAPI revokes sessions on logout from another device, well before
        the cache TTL runs out.
        """
        token = await self.token()
        try:
            return await call(token)
        except BrokerError as e:
            if e.status not in (401, 403):
                raise
            logger.warning("Session token rejected upstream, logging in again")
            await self.tokens.clear(self.config.token_key)
            return await call(await self.token())

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def quote(self, symbol: str, exchange: str | None = None) -> Quote:
        exchange = exchange or self.config.default_exchange

        async def fetch(token: str) -> Quote:
            scrip = await self.client.search_scrip(token, symbol, exchange)
            return await self.client.quote(token, scrip)

        return await self._with_token(fetch)

    def session_window(self, now: datetime | None = None) -> tuple[datetime, datetime]:
        """Today's session open → now, in market-local time."""
        end = (now or self.clock.now()).astimezone(self.config.tz)
        open_time = self.config.session_open_time
        start = end.replace(
            hour=open_time.hour, minute=open_time.minute, second=0, microsecond=0
        )
        return start, end

    async def candles(
        self,
        symbol: str,
        exchange: str | None = None,
        interval: str | None = None,
    ) -> list[Candle]:
        """Today's session candles for ``symbol``.

        Raises:
            MarketDataError: Unknown symbol, or no candles yet (before the
                session opens, holidays, weekends).
        """
        exchange = exchange or self.config.default_exchange
        interval = interval or self.config.default_interval
        start, end = self.session_window()
        if start > end:
            raise MarketDataError(NO_CANDLES_MESSAGE)

        async def fetch(token: str) -> list[Candle]:
            scrip = await self.client.search_scrip(token, symbol, exchange)
            return await self.candle_source.candles(token, scrip, interval, start, end)

        candles = await self._with_token(fetch)
        if not candles:
            raise MarketDataError(NO_CANDLES_MESSAGE)
        logger.debug(f"{symbol}: {len(candles)} {interval} candles since {start:%H:%M}")
        return candles

    async def indicators(
        self,
        symbol: str,
        exchange: str | None = None,
        interval: str | None = None,
    ) -> IndicatorResult:
        """Session VWAP and RSI for ``symbol``."""
        candles = await self.candles(symbol, exchange, interval)
        return compute_indicators(candles, rsi_period=self.config.rsi_period)

    async def vix(self) -> VixSnapshot:
        return await self.vix_feed.vix()

    async def health(self) -> HealthStatus:
        """Liveness report; an unreachable Redis shows as ``store_ok=False``."""
        store_ok = True
        backend = "memory"
        if isinstance(self.store, RedisStore):
            backend = "redis"
            store_ok = await self.store.ping()
        cached = await self.store.get(self.config.token_key) if store_ok else None
        return HealthStatus(
            status="ok" if store_ok else "degraded",
            time=self.clock.now(),
            token_cached=bool(cached),
            store=backend,
            store_ok=store_ok,
            logins=self.tokens.login_count,
            latency_ms=self.client.get_latency_stats(),
        )
