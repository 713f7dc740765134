"""Market data feeds outside the broker session."""

from .base import CandleSource
from .nse import INDIA_VIX, NseIndexFeed

__all__ = ["CandleSource", "INDIA_VIX", "NseIndexFeed"]
