from datetime import datetime, timedelta, timezone

from core.entities import Candle

IST = timezone(timedelta(hours=5, minutes=30))

# RFC 6238 appendix B: ASCII seed "12345678901234567890", SHA-1, 8 digits
RFC6238_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
RFC6238_SHA1_VECTORS = [
    (59, "94287082"),
    (1111111109, "07081804"),
    (1111111111, "14050471"),
    (1234567890, "89005924"),
    (2000000000, "69279037"),
    (20000000000, "65353130"),
]


def create_test_candles(count: int = 50, base_price: float = 100.0) -> list[Candle]:
    """Create synthetic 10-minute session candles for testing."""
    candles = []
    current_price = base_price
    base_time = datetime(2025, 1, 1, 9, 15, tzinfo=IST)

    for i in range(count):
        # Simple random walk with slight upward bias
        price_change = (i % 3 - 1) * 0.5  # -0.5, 0, 0.5 pattern
        current_price += price_change

        open_price = current_price
        high_price = current_price + abs(price_change) + 0.2
        low_price = current_price - abs(price_change) - 0.1
        close_price = current_price + price_change * 0.5
        volume = 1000 + (i % 10) * 100  # Varying volume

        candle = Candle(
            ts=base_time + timedelta(minutes=10 * i),
            open=open_price,
            high=high_price,
            low=low_price,
            close=close_price,
            volume=volume,
        )
        candles.append(candle)
        current_price = close_price

    return candles


def create_trending_candles(count: int = 50, trend: str = "up") -> list[Candle]:
    """Create strictly trending candles (every close beyond the previous)."""
    candles = []
    current_price = 100.0
    base_time = datetime(2025, 1, 1, 9, 15, tzinfo=IST)

    trend_direction = 1 if trend == "up" else -1

    for i in range(count):
        # Consistent trend with minor noise, never reversing
        price_change = trend_direction * (0.3 + (i % 5) * 0.05)

        open_price = current_price
        close_price = current_price + price_change
        high_price = max(open_price, close_price) + 0.1
        low_price = min(open_price, close_price) - 0.1
        volume = 1000 + abs(price_change) * 500

        candle = Candle(
            ts=base_time + timedelta(minutes=10 * i),
            open=open_price,
            high=high_price,
            low=low_price,
            close=close_price,
            volume=volume,
        )
        candles.append(candle)
        current_price = close_price

    return candles


def candle(ts: datetime, o: float, h: float, l: float, c: float, v: float) -> Candle:
    return Candle(ts=ts, open=o, high=h, low=l, close=c, volume=v)
