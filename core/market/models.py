"""
Market data models returned by the upstream integrations.

These are broker-agnostic value objects: the Angel One and NSE clients parse
their raw JSON into them and the gateway serialises them back out with
``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = [
    "CandleInterval",
    "Exchange",
    "Quote",
    "Scrip",
    "VixSnapshot",
]


class Exchange(str, Enum):
    """Exchange segments accepted by SmartAPI."""

    NSE = "NSE"
    BSE = "BSE"
    NFO = "NFO"
    BFO = "BFO"
    MCX = "MCX"
    CDS = "CDS"


class CandleInterval(str, Enum):
    """Historical candle intervals accepted by SmartAPI."""

    ONE_MINUTE = "ONE_MINUTE"
    THREE_MINUTE = "THREE_MINUTE"
    FIVE_MINUTE = "FIVE_MINUTE"
    TEN_MINUTE = "TEN_MINUTE"
    FIFTEEN_MINUTE = "FIFTEEN_MINUTE"
    THIRTY_MINUTE = "THIRTY_MINUTE"
    ONE_HOUR = "ONE_HOUR"
    ONE_DAY = "ONE_DAY"


@dataclass(slots=True, frozen=True)
class Scrip:
    """A tradable instrument as resolved by scrip search.

    Attributes:
        trading_symbol: Exchange trading symbol (e.g. ``RELIANCE-EQ``)
        symbol_token: Numeric instrument token used by quote/candle calls
        exchange: Exchange segment the token belongs to
    """

    trading_symbol: str
    symbol_token: str
    exchange: str


@dataclass(slots=True, frozen=True)
class Quote:
    """Full-mode market quote for one instrument."""

    symbol: str
    exchange: str
    price: float
    open: float
    high: float
    low: float
    prev_close: float
    volume: float
    change: float
    change_pct: float
    symbol_token: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "exchange": self.exchange,
            "price": self.price,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "prevClose": self.prev_close,
            "volume": self.volume,
            "change": self.change,
            "changePct": self.change_pct,
            "symboltoken": self.symbol_token,
        }


@dataclass(slots=True, frozen=True)
class VixSnapshot:
    """India VIX level from the NSE index listing."""

    vix: float
    change_pct: float
    high: float
    low: float

    def to_dict(self) -> dict[str, float]:
        return {
            "vix": self.vix,
            "changePct": self.change_pct,
            "high": self.high,
            "low": self.low,
        }
