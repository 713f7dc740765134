from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

__all__ = ["Candle"]

@dataclass(frozen=True, slots=True)
class Candle:
    ts: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3
