"""
Upstream broker integrations.

Only the read-only SmartAPI surface is implemented: login, scrip search,
quotes and historical candles.
"""

from .angel_one import AngelOneClient, AngelOneConfig
from .base_http import HttpBrokerClient, HttpClientConfig
from .exceptions import AuthenticationError, BrokerError, MarketDataError

__all__ = [
    "AngelOneClient",
    "AngelOneConfig",
    "AuthenticationError",
    "BrokerError",
    "HttpBrokerClient",
    "HttpClientConfig",
    "MarketDataError",
]
