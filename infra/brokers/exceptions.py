"""
Broker-specific exceptions and error handling.

Only upstream failures surface as exceptions. Data-sufficiency edge cases
(short RSI history, zero volume) are absorbed by the indicators.
"""

from core.auth.exceptions import AuthenticationError

__all__ = ["AuthenticationError", "BrokerError", "MarketDataError"]


class BrokerError(Exception):
    """Base exception for broker-related errors.

    Raised when an upstream call fails: HTTP error status, invalid JSON,
    connectivity problems after all retries.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        """Initialize broker error.

        Args:
            message: Error description.
            status: HTTP status code if the failure came from a response.
        """
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status:
            return f"BrokerError (HTTP {self.status}): {self.message}"
        return f"BrokerError: {self.message}"


class MarketDataError(BrokerError):
    """Upstream answered, but without the market data asked for.

    Unknown symbol, empty quote, no candles yet (market closed), index
    missing from the NSE listing.
    """

    def __str__(self) -> str:
        return self.message
