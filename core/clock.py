"""
Time sources for TOTP windows and token expiry.

Everything that needs "now" (the TOTP generator, the in-memory store's TTL
eviction, the candle session window) takes a clock instead of calling
``time.time()`` directly, so tests can pin the current 30-second window.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Clock interface for time management."""

    def now(self) -> datetime:
        """Get current time as timezone-aware datetime."""
        ...

    def now_ms(self) -> int:
        """Get current time as milliseconds since epoch."""
        ...


class WallClock:
    """Real wall-clock time implementation."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def now_ms(self) -> int:
        return int(self.now().timestamp() * 1000)


class SimClock:
    """Manually advanced clock for deterministic tests."""

    def __init__(self, start_time: datetime | None = None):
        """
        Initialize simulated clock.

        Args:
            start_time: Starting time (defaults to current wall-clock time).
                Naive datetimes are taken as UTC.
        """
        start = start_time or datetime.now(UTC)
        if start.tzinfo is None:
            start = start.replace(tzinfo=UTC)
        self._current_time = start

    @classmethod
    def at_unix(cls, seconds: float) -> SimClock:
        """Build a clock positioned at a Unix timestamp."""
        return cls(datetime.fromtimestamp(seconds, UTC))

    def now(self) -> datetime:
        return self._current_time

    def now_ms(self) -> int:
        return int(self._current_time.timestamp() * 1000)

    def advance(self, new_time: datetime) -> None:
        """
        Move the clock forward.

        Args:
            new_time: New time (must be >= current time)
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    def advance_seconds(self, seconds: float) -> None:
        self.advance(self._current_time + timedelta(seconds=seconds))


# Global clock instance - defaults to wall clock
_global_clock: Clock = WallClock()


def get_clock() -> Clock:
    """Get the global clock instance."""
    return _global_clock


def set_clock(clock: Clock) -> None:
    """Set the global clock instance."""
    global _global_clock
    _global_clock = clock


def unix_seconds(clock: Clock) -> float:
    """Current time of ``clock`` as fractional Unix seconds."""
    return clock.now_ms() / 1000
