from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

__all__ = ["IndicatorResult"]


@dataclass(frozen=True, slots=True)
class IndicatorResult:
    """
    Indicator values for a candle sequence, as served to clients.

    ``vwap`` is rounded to 2 decimals (or the last close when nothing traded);
    ``rsi`` is rounded to 2 decimals and is 50 when history is too short.
    """
    vwap: float | None
    rsi: float
    candle_count: int = 0
    last_close: float | None = None
    as_of: datetime | None = None

    @property
    def price_above_vwap(self) -> bool | None:
        """True if the last close trades above VWAP."""
        if self.vwap is None or self.last_close is None:
            return None
        return self.last_close > self.vwap

    def to_dict(self) -> dict[str, float | None]:
        """Payload shape of the candles command: ``{"vwap", "rsi"}``."""
        data = asdict(self)
        return {"vwap": data["vwap"], "rsi": data["rsi"]}
