"""
Gateway configuration loaded from environment variables / ``.env``.

Broker credentials live in :class:`infra.brokers.AngelOneConfig`; this covers
the token cache and the market session window.
"""

from __future__ import annotations

from datetime import time
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings

from core.auth import TOKEN_TTL_SECONDS
from core.market import CandleInterval, Exchange

__all__ = ["GatewayConfig"]


class GatewayConfig(BaseSettings):
    """Token cache and market session settings.

    Configuration options:
    - redis_url: empty means an in-process MemoryStore
    - token_single_flight: share one login between concurrent cache misses
    - session_open: local market open ("HH:MM"), start of the candle window
    """

    redis_url: str = ""
    token_key: str = "angel_token"
    token_ttl_seconds: int = TOKEN_TTL_SECONDS
    token_single_flight: bool = True

    market_timezone: str = "Asia/Kolkata"
    session_open: str = "09:15"
    default_exchange: str = Exchange.NSE.value
    default_interval: str = CandleInterval.TEN_MINUTE.value
    rsi_period: int = 14

    model_config = {"env_file": ".env", "case_sensitive": False, "extra": "ignore"}

    def model_post_init(self, __context: Any) -> None:
        """Validate values that would otherwise fail deep inside a request."""
        if self.token_ttl_seconds <= 0:
            raise ValueError("token_ttl_seconds must be positive")
        if self.rsi_period < 1:
            raise ValueError("rsi_period must be >= 1")
        try:
            ZoneInfo(self.market_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown market_timezone: {self.market_timezone}") from e
        _ = self.session_open_time
        if self.default_interval not in CandleInterval._value2member_map_:
            raise ValueError(f"Invalid default_interval: {self.default_interval}")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.market_timezone)

    @property
    def session_open_time(self) -> time:
        try:
            hour, minute = (int(part) for part in self.session_open.split(":"))
            return time(hour, minute)
        except ValueError as e:
            raise ValueError(f"session_open must be HH:MM, got {self.session_open!r}") from e
