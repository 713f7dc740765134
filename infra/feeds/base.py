from __future__ import annotations

from datetime import datetime
from typing import Protocol

from core.entities import Candle
from core.market import Scrip


class CandleSource(Protocol):
    async def candles(
        self,
        token: str,
        scrip: Scrip,
        interval: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Candle]: ...
