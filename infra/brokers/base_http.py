"""
Base async HTTP client shared by the upstream market-data integrations.

Provides session setup with certifi-backed TLS, light client-side rate
limiting, retries with exponential backoff on transient failures and request
latency tracking.
"""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
import time
from dataclasses import dataclass
from typing import Any

import aiohttp
import certifi

from .exceptions import BrokerError

__all__ = ["HttpClientConfig", "HttpBrokerClient", "RETRYABLE_STATUSES"]

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass
class HttpClientConfig:
    """Connection settings for an upstream REST API."""

    base_url: str
    rest_timeout: int = 10
    max_retries: int = 3
    retry_backoff: float = 1.0
    min_request_interval: float = 0.1
    user_agent: str = "TradeSenseGateway/1.0"


class HttpBrokerClient:
    """Async JSON-over-HTTP client with retry logic.

    Subclasses add the endpoint-specific calls and headers. Use as an async
    context manager, or call :meth:`close` when done.
    """

    def __init__(self, config: HttpClientConfig) -> None:
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session: aiohttp.ClientSession | None = None

        # Rate limiting
        self._last_request_time = 0.0

        # Latency tracking
        self._request_latencies: list[float] = []
        self._max_latency_samples = 100

    async def __aenter__(self) -> HttpBrokerClient:
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.rest_timeout)

            ssl_context = ssl.create_default_context(cafile=certifi.where())
            ssl_context.check_hostname = True
            ssl_context.verify_mode = ssl.CERT_REQUIRED
            connector = aiohttp.TCPConnector(ssl=ssl_context)

            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": self.config.user_agent},
                connector=connector,
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _rate_limit(self) -> None:
        """Keep a minimum spacing between requests."""
        current_time = time.monotonic()
        time_since_last = current_time - self._last_request_time

        if time_since_last < self.config.min_request_interval:
            await asyncio.sleep(self.config.min_request_interval - time_since_last)

        self._last_request_time = time.monotonic()

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.config.base_url}{endpoint}"

    async def _http_request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        retry_count: int = 0,
    ) -> Any:
        """Make an HTTP request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API path appended to ``base_url``, or an absolute URL
            params: Query parameters
            data: JSON request body
            headers: Extra request headers
            retry_count: Current retry attempt

        Returns:
            Parsed JSON response

        Raises:
            BrokerError: If the request fails after all retries
        """
        await self._ensure_session()
        await self._rate_limit()

        url = self._url(endpoint)
        start_time = time.perf_counter()

        try:
            assert self._session is not None
            async with self._session.request(
                method=method,
                url=url,
                params=params,
                json=data if method.upper() != "GET" else None,
                headers=headers,
            ) as response:
                self._track_latency((time.perf_counter() - start_time) * 1000)
                response_text = await response.text()

                if response.status == 200:
                    try:
                        return json.loads(response_text)
                    except json.JSONDecodeError as e:
                        raise BrokerError(f"Invalid JSON response: {e}") from e

                if (
                    response.status in RETRYABLE_STATUSES
                    and retry_count < self.config.max_retries
                ):
                    self.logger.warning(
                        f"{method} {endpoint} returned HTTP {response.status}, retrying"
                    )
                    await self._backoff_sleep(retry_count)
                    return await self._http_request(
                        method, endpoint, params, data, headers, retry_count + 1
                    )

                try:
                    error_data = json.loads(response_text)
                    error_msg = error_data.get("message") or error_data.get(
                        "msg", f"HTTP {response.status}"
                    )
                except (json.JSONDecodeError, AttributeError):
                    error_msg = response_text[:200] or f"HTTP {response.status}"

                raise BrokerError(
                    f"API request failed: {error_msg}", status=response.status
                )

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            # ClientTimeout expiry raises asyncio.TimeoutError, not a ClientError
            reason = str(e) or type(e).__name__
            if retry_count < self.config.max_retries:
                self.logger.warning(f"Request failed, retrying: {reason}")
                await self._backoff_sleep(retry_count)
                return await self._http_request(
                    method, endpoint, params, data, headers, retry_count + 1
                )
            raise BrokerError(f"HTTP request failed: {reason}") from e

    async def _backoff_sleep(self, retry_count: int) -> None:
        """Sleep with exponential backoff."""
        await asyncio.sleep(self.config.retry_backoff * (2**retry_count))

    def _track_latency(self, latency_ms: float) -> None:
        self._request_latencies.append(latency_ms)

        if len(self._request_latencies) > self._max_latency_samples:
            self._request_latencies.pop(0)

    def get_latency_stats(self) -> dict[str, float]:
        """Get latency statistics for monitoring.

        Returns:
            Dictionary with avg, max, and p95 latency in milliseconds
        """
        if not self._request_latencies:
            return {"avg": 0.0, "max": 0.0, "p95": 0.0}

        latencies = sorted(self._request_latencies)
        n = len(latencies)
        p95_idx = int(0.95 * n)

        return {
            "avg": sum(latencies) / n,
            "max": max(latencies),
            "p95": latencies[p95_idx] if p95_idx < n else latencies[-1],
        }
