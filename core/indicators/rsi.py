from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from core.entities import Candle
from core.utils import round_half_up

__all__ = ["RSI", "RSI_NEUTRAL", "rsi"]

RSI_NEUTRAL = 50.0


@dataclass
class RSI:
    """Relative Strength Index with Wilder's smoothing.

    The first ``period`` close-to-close differences seed the average gain and
    average loss as plain means. Every later difference is folded in with
    Wilder's recurrence::

        avg = (avg * (period - 1) + x) / period

    Updating is O(1), and after the same closes the value is identical to
    :func:`rsi` recomputed over the full history.

    Args:
        period: Smoothing period. Typically 14.

    Attributes:
        period: The smoothing period.

    Example:
        >>> rsi_ind = RSI(period=14)
        >>> rsi_ind.update(candle)
        >>> if rsi_ind.is_ready:
        ...     overbought = rsi_ind.value > 70
    """

    period: int = 14

    def __post_init__(self) -> None:
        if self.period < 1:
            raise ValueError("period must be >= 1")
        self._prev_close: float | None = None
        self._closes_seen = 0
        self._avg_gain = 0.0
        self._avg_loss = 0.0

    def update(self, candle: Candle) -> None:
        self.update_close(candle.close)

    def update_close(self, close: float) -> None:
        """Fold one more close into the averages."""
        if self._prev_close is not None:
            diff = close - self._prev_close
            diffs_seen = self._closes_seen  # including this one

            if diffs_seen <= self.period:
                # Seeding: accumulate sums, average once the window is full
                if diff > 0:
                    self._avg_gain += diff
                else:
                    self._avg_loss += abs(diff)
                if diffs_seen == self.period:
                    self._avg_gain /= self.period
                    self._avg_loss /= self.period
            else:
                self._avg_gain = (
                    self._avg_gain * (self.period - 1) + max(diff, 0.0)
                ) / self.period
                self._avg_loss = (
                    self._avg_loss * (self.period - 1) + max(-diff, 0.0)
                ) / self.period

        self._prev_close = close
        self._closes_seen += 1

    @property
    def is_ready(self) -> bool:
        """True once ``period + 1`` closes have been seen."""
        return self._closes_seen >= self.period + 1

    @property
    def value(self) -> float:
        """Current RSI in [0, 100].

        Returns 50 (neutral) until enough closes are available and 100 when
        the smoothed average loss is exactly zero.
        """
        if not self.is_ready:
            return RSI_NEUTRAL
        if self._avg_loss == 0:
            return 100.0
        rs = self._avg_gain / self._avg_loss
        return round_half_up(100 - 100 / (1 + rs), 2)


def rsi(closes: Iterable[float], period: int = 14) -> float:
    """RSI of an ordered close series in a single forward pass."""
    indicator = RSI(period)
    for close in closes:
        indicator.update_close(close)
    return indicator.value
