"""
India VIX from the public NSE index listing.

No authentication is needed, but NSE rejects requests that do not look like
they come from a browser, hence the headers below.
"""

from __future__ import annotations

import logging
from typing import Any

from core.market import VixSnapshot
from core.utils import to_float
from infra.brokers.base_http import HttpBrokerClient, HttpClientConfig
from infra.brokers.exceptions import MarketDataError

__all__ = ["NseIndexFeed", "INDIA_VIX"]

logger = logging.getLogger(__name__)

INDIA_VIX = "INDIA VIX"

_BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
    "Referer": "https://www.nseindia.com/",
}


class NseIndexFeed(HttpBrokerClient):
    """Reads index levels from ``/api/allIndices``."""

    def __init__(self, base_url: str = "https://www.nseindia.com", rest_timeout: int = 10) -> None:
        super().__init__(
            HttpClientConfig(
                base_url=base_url,
                rest_timeout=rest_timeout,
                user_agent=_BROWSER_HEADERS["User-Agent"],
            )
        )

    async def all_indices(self) -> list[dict[str, Any]]:
        response = await self._http_request(
            "GET", "/api/allIndices", headers=_BROWSER_HEADERS
        )
        data = response.get("data") if isinstance(response, dict) else None
        return data if isinstance(data, list) else []

    async def index(self, name: str) -> dict[str, Any]:
        """Raw listing entry for index ``name``.

        Raises:
            MarketDataError: If the index is not in the listing.
        """
        for entry in await self.all_indices():
            if isinstance(entry, dict) and entry.get("index") == name:
                return entry
        raise MarketDataError(f"{name} not found")

    async def vix(self) -> VixSnapshot:
        try:
            entry = await self.index(INDIA_VIX)
        except MarketDataError as e:
            raise MarketDataError("VIX not found") from e

        return VixSnapshot(
            vix=to_float(entry.get("last")),
            change_pct=to_float(entry.get("percentChange")),
            high=to_float(entry.get("high")),
            low=to_float(entry.get("low")),
        )
