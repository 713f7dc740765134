"""Name lookup for the streaming indicators (CLI and settings use names)."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from core.indicators.base import Indicator
from core.indicators.rsi import RSI
from core.indicators.vwap import VWAP

__all__ = ["IndicatorRegistry", "INDICATOR_REGISTRY"]

IndicatorFactory = Callable[..., Indicator]


class IndicatorRegistry:
    """Case-insensitive map of indicator names to factories.

    Example:
        >>> INDICATOR_REGISTRY.create("RSI", period=9).period
        9
        >>> "vwap" in INDICATOR_REGISTRY
        True
    """

    def __init__(self) -> None:
        self._factories: dict[str, IndicatorFactory] = {}

    def register(self, name: str, factory: IndicatorFactory) -> None:
        key = name.lower()
        if key in self._factories:
            raise ValueError(f"Indicator '{name}' is already registered")
        self._factories[key] = factory

    def create(self, name: str, **params: Any) -> Indicator:
        """Build a fresh indicator.

        Raises:
            KeyError: Unknown name; the message lists the known ones.
        """
        try:
            factory = self._factories[name.lower()]
        except KeyError:
            raise KeyError(
                f"Indicator '{name}' not found in registry. Available: {self.names()}"
            ) from None
        return factory(**params)

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories


INDICATOR_REGISTRY = IndicatorRegistry()

INDICATOR_REGISTRY.register("vwap", VWAP)
INDICATOR_REGISTRY.register("rsi", RSI)
