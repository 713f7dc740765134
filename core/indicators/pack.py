from __future__ import annotations

from collections.abc import Iterable

from core.entities import Candle
from core.indicators.rsi import RSI
from core.indicators.snapshot import IndicatorResult
from core.indicators.vwap import VWAP

__all__ = ["IndicatorPack", "compute_indicators"]


class IndicatorPack:
    """VWAP and RSI fed from the same candle stream, with snapshot capability."""

    def __init__(self, rsi_period: int = 14) -> None:
        """Initialize indicator pack.

        Args:
            rsi_period: Wilder smoothing period for RSI.
        """
        self.vwap = VWAP()
        self.rsi = RSI(rsi_period)
        self._count = 0
        self._last: Candle | None = None

    def update(self, candle: Candle) -> None:
        """Update all indicators with new candle.

        Args:
            candle: Market data candle, newer than the previous one
        """
        self.vwap.update(candle)
        self.rsi.update(candle)
        self._count += 1
        self._last = candle

    def extend(self, candles: Iterable[Candle]) -> IndicatorPack:
        for candle in candles:
            self.update(candle)
        return self

    @property
    def candle_count(self) -> int:
        return self._count

    def snapshot(self) -> IndicatorResult:
        """Freeze the current values into an IndicatorResult."""
        return IndicatorResult(
            vwap=self.vwap.value,
            rsi=self.rsi.value,
            candle_count=self._count,
            last_close=self._last.close if self._last else None,
            as_of=self._last.ts if self._last else None,
        )


def compute_indicators(candles: Iterable[Candle], rsi_period: int = 14) -> IndicatorResult:
    """VWAP and RSI over an ordered candle sequence in one pass."""
    return IndicatorPack(rsi_period).extend(candles).snapshot()
