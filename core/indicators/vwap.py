from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from core.entities import Candle
from core.utils import round_half_up

__all__ = ["VWAP", "vwap"]


@dataclass
class VWAP:
    """Volume-Weighted Average Price over every candle seen so far.

    Each candle contributes its typical price ``(high + low + close) / 3``
    weighted by its volume. The running sums are kept, so updating with one
    more candle costs O(1).

    When no volume has traded at all (pre-open auction candles, illiquid
    scrips) the value falls back to the last close instead of dividing by
    zero.

    Example:
        >>> vwap_ind = VWAP()
        >>> for candle in session_candles:
        ...     vwap_ind.update(candle)
        >>> vwap_ind.value
        2451.37
    """

    def __post_init__(self) -> None:
        self._cum_tpv = 0.0
        self._cum_volume = 0.0
        self._last_close: float | None = None

    def update(self, candle: Candle) -> None:
        self._cum_tpv += candle.typical_price * candle.volume
        self._cum_volume += candle.volume
        self._last_close = candle.close

    @property
    def value(self) -> float | None:
        """VWAP rounded to 2 decimals, last close on zero volume, None if empty."""
        if self._last_close is None:
            return None
        if self._cum_volume == 0:
            return self._last_close
        return round_half_up(self._cum_tpv / self._cum_volume, 2)

    @property
    def is_ready(self) -> bool:
        return self._last_close is not None

    @property
    def total_volume(self) -> float:
        return self._cum_volume


def vwap(candles: Iterable[Candle]) -> float | None:
    """VWAP of an ordered candle sequence (None for an empty sequence)."""
    indicator = VWAP()
    for candle in candles:
        indicator.update(candle)
    return indicator.value
