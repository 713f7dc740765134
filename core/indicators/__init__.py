from .base import Indicator
from .pack import IndicatorPack, compute_indicators
from .registry import INDICATOR_REGISTRY, IndicatorRegistry
from .rsi import RSI, RSI_NEUTRAL, rsi
from .snapshot import IndicatorResult
from .vwap import VWAP, vwap

__all__ = [
    "Indicator",
    "VWAP",
    "RSI",
    "RSI_NEUTRAL",
    "vwap",
    "rsi",
    "IndicatorResult",
    "IndicatorPack",
    "IndicatorRegistry",
    "INDICATOR_REGISTRY",
    "compute_indicators",
]
