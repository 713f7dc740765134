"""
Angel One SmartAPI client for login, quotes and historical candles.

Login is password + TOTP. The JWT it returns is not kept here: callers obtain
it through :class:`core.auth.TokenCache` and pass it to each secure call.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic_settings import BaseSettings

from core.auth import AuthenticationError, TOTPGenerator
from core.entities import Candle
from core.market import CandleInterval, Exchange, Quote, Scrip
from core.utils import to_float

from .base_http import HttpBrokerClient, HttpClientConfig
from .exceptions import BrokerError, MarketDataError

__all__ = ["AngelOneConfig", "AngelOneClient", "CANDLE_DATE_FORMAT"]

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/rest/auth/angelbroking/user/v1/loginByPassword"
SEARCH_SCRIP_ENDPOINT = "/rest/secure/angelbroking/order/v1/searchScrip"
QUOTE_ENDPOINT = "/rest/secure/angelbroking/market/v1/quote/"
CANDLE_ENDPOINT = "/rest/secure/angelbroking/historical/v1/getCandleData"

CANDLE_DATE_FORMAT = "%Y-%m-%d %H:%M"


class AngelOneConfig(BaseSettings):
    """SmartAPI credentials and connection settings loaded from environment.

    The client identity headers (local/public IP, MAC) are required by the
    login endpoint but not verified; the defaults are fixed placeholders.
    """

    angel_api_key: str = ""
    angel_client_id: str = ""
    angel_password: str = ""
    angel_totp_secret: str = ""
    angel_base_url: str = "https://apiconnect.angelone.in"

    angel_client_local_ip: str = "127.0.0.1"
    angel_client_public_ip: str = "106.193.147.98"
    angel_mac_address: str = "fe80::216e:6507:4b90:3719"

    rest_timeout: int = 10
    max_retries: int = 3

    model_config = {"env_file": ".env", "case_sensitive": False, "extra": "ignore"}

    def model_post_init(self, __context: Any) -> None:
        """Validate that required fields are set."""
        for field in ("angel_api_key", "angel_client_id", "angel_password", "angel_totp_secret"):
            if not getattr(self, field):
                raise ValueError(f"{field.upper()} environment variable is required")
        if self.rest_timeout <= 0:
            raise ValueError("rest_timeout must be positive")


class AngelOneClient(HttpBrokerClient):
    """SmartAPI REST client.

    Supports:
    - Password + TOTP login returning a session JWT
    - Scrip search (symbol -> instrument token)
    - Full-mode quotes
    - Historical OHLCV candles
    """

    def __init__(
        self,
        config: AngelOneConfig | None = None,
        totp: TOTPGenerator | None = None,
    ) -> None:
        """Initialize the SmartAPI client.

        Args:
            config: SmartAPI configuration (loads from env if None)
            totp: TOTP generator used by :meth:`login_with_totp`
        """
        if config is None:
            config = AngelOneConfig()

        super().__init__(
            HttpClientConfig(
                base_url=config.angel_base_url,
                rest_timeout=config.rest_timeout,
                max_retries=config.max_retries,
            )
        )
        self.settings = config
        self.totp = totp or TOTPGenerator()

    def _base_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-UserType": "USER",
            "X-SourceID": "WEB",
            "X-PrivateKey": self.settings.angel_api_key,
        }

    def _auth_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}", **self._base_headers()}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(self, totp_code: str) -> str:
        """Exchange client code, password and a TOTP code for a session JWT.

        Raises:
            AuthenticationError: If SmartAPI rejects the login.
        """
        headers = {
            **self._base_headers(),
            "X-ClientLocalIP": self.settings.angel_client_local_ip,
            "X-ClientPublicIP": self.settings.angel_client_public_ip,
            "X-MACAddress": self.settings.angel_mac_address,
        }
        payload = {
            "clientcode": self.settings.angel_client_id,
            "password": self.settings.angel_password,
            "totp": totp_code,
        }

        try:
            response = await self._http_request(
                "POST", LOGIN_ENDPOINT, data=payload, headers=headers
            )
        except BrokerError as e:
            if e.status in (401, 403):
                raise AuthenticationError(f"Login failed: {e.message}") from e
            raise

        data = response.get("data") if isinstance(response, dict) else None
        token = data.get("jwtToken") if isinstance(data, dict) else None
        if not token:
            message = (
                response.get("message") if isinstance(response, dict) else None
            ) or "check credentials"
            raise AuthenticationError(f"Login failed: {message}")

        self.logger.info(f"Logged in as {self.settings.angel_client_id}")
        return str(token)

    async def login_with_totp(self) -> str:
        """Login with a TOTP code for the current 30-second window."""
        code = self.totp.generate(self.settings.angel_totp_secret)
        return await self.login(code)

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def search_scrip(
        self, token: str, symbol: str, exchange: str = Exchange.NSE.value
    ) -> Scrip:
        """Resolve a trading symbol to its instrument token.

        Raises:
            MarketDataError: If the search returns no match.
        """
        response = await self._http_request(
            "GET",
            SEARCH_SCRIP_ENDPOINT,
            params={"exchange": exchange, "searchscrip": symbol},
            headers=self._auth_headers(token),
        )
        matches = response.get("data") if isinstance(response, dict) else None
        first = matches[0] if isinstance(matches, list) and matches else None
        if not isinstance(first, dict) or not first.get("symboltoken"):
            raise MarketDataError(f"Symbol not found: {symbol}")

        return Scrip(
            trading_symbol=str(first.get("tradingsymbol", symbol)),
            symbol_token=str(first["symboltoken"]),
            exchange=str(first.get("exchange", exchange)),
        )

    async def quote(self, token: str, scrip: Scrip) -> Quote:
        """Fetch a full-mode quote for ``scrip``.

        Raises:
            MarketDataError: If SmartAPI returns no quote for the token.
        """
        response = await self._http_request(
            "POST",
            QUOTE_ENDPOINT,
            data={"mode": "FULL", "exchangeTokens": {scrip.exchange: [scrip.symbol_token]}},
            headers=self._auth_headers(token),
        )
        data = response.get("data") if isinstance(response, dict) else None
        fetched = data.get("fetched") if isinstance(data, dict) else None
        q = fetched[0] if isinstance(fetched, list) and fetched else None
        if not isinstance(q, dict):
            raise MarketDataError("Quote unavailable")

        return Quote(
            symbol=scrip.trading_symbol,
            exchange=scrip.exchange,
            price=to_float(q.get("ltp")),
            open=to_float(q.get("open")),
            high=to_float(q.get("high")),
            low=to_float(q.get("low")),
            prev_close=to_float(q.get("close")),
            volume=to_float(q.get("tradedVolume", q.get("tradeVolume"))),
            change=to_float(q.get("netChange")),
            change_pct=to_float(q.get("percentChange")),
            symbol_token=scrip.symbol_token,
        )

    async def candles(
        self,
        token: str,
        scrip: Scrip,
        interval: str = CandleInterval.TEN_MINUTE.value,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Candle]:
        """Download OHLCV candles for ``scrip`` between ``start`` and ``end``.

        Dates are sent in exchange-local time as ``YYYY-MM-DD HH:MM``, so pass
        datetimes already converted to the market timezone. Malformed rows
        are skipped and a missing ``data`` field yields an empty list.
        """
        if start is None or end is None:
            raise ValueError("start and end are required")
        if start > end:
            raise ValueError(f"start {start} is after end {end}")

        response = await self._http_request(
            "POST",
            CANDLE_ENDPOINT,
            data={
                "exchange": scrip.exchange,
                "symboltoken": scrip.symbol_token,
                "interval": interval,
                "fromdate": start.strftime(CANDLE_DATE_FORMAT),
                "todate": end.strftime(CANDLE_DATE_FORMAT),
            },
            headers=self._auth_headers(token),
        )
        rows = response.get("data") if isinstance(response, dict) else None
        if not rows:
            return []

        candles = []
        for row in rows:
            candle = self._parse_candle_row(row)
            if candle is None:
                self.logger.warning(f"Skipping malformed candle row: {row!r}")
                continue
            candles.append(candle)

        candles.sort(key=lambda c: c.ts)
        return candles

    @staticmethod
    def _parse_candle_row(row: Any) -> Candle | None:
        """
        SmartAPI candle format::

            [timestamp (ISO-8601 with offset), open, high, low, close, volume]
        """
        if not isinstance(row, (list, tuple)) or len(row) < 6:
            return None
        try:
            ts = datetime.fromisoformat(str(row[0]))
            open_, high, low, close, volume = (float(x) for x in row[1:6])
        except (TypeError, ValueError):
            return None
        if volume < 0:
            return None
        return Candle(ts=ts, open=open_, high=high, low=low, close=close, volume=volume)
