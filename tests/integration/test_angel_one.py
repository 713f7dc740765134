"""
Integration tests for the SmartAPI client and the NSE index feed.

HTTP is mocked at ``_http_request`` so the request shapes (endpoints,
headers, payloads) and the response parsing are checked without network.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from core.auth import AuthenticationError, TOTPGenerator
from core.clock import SimClock
from core.market import Scrip
from infra.brokers import AngelOneClient, AngelOneConfig, BrokerError, MarketDataError
from infra.brokers.angel_one import CANDLE_ENDPOINT, LOGIN_ENDPOINT, QUOTE_ENDPOINT
from infra.feeds import NseIndexFeed
from tests.fixtures import RFC6238_SECRET

IST = timezone(timedelta(hours=5, minutes=30))
SCRIP = Scrip(trading_symbol="RELIANCE-EQ", symbol_token="2885", exchange="NSE")


def make_config(**overrides) -> AngelOneConfig:
    values = {
        "angel_api_key": "test_key",
        "angel_client_id": "A123456",
        "angel_password": "1234",
        "angel_totp_secret": RFC6238_SECRET,
    }
    values.update(overrides)
    return AngelOneConfig(**values)


class TestAngelOneConfig:
    def test_missing_credentials_rejected(self, monkeypatch):
        monkeypatch.delenv("ANGEL_API_KEY", raising=False)
        with pytest.raises(ValueError, match="ANGEL_API_KEY"):
            make_config(angel_api_key="")

    def test_defaults(self):
        config = make_config()
        assert config.angel_base_url == "https://apiconnect.angelone.in"
        assert config.rest_timeout == 10


class TestAngelOneClient:
    @pytest_asyncio.fixture
    async def client(self):
        client = AngelOneClient(
            make_config(), totp=TOTPGenerator(clock=SimClock.at_unix(59))
        )
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_login_sends_totp_and_returns_jwt(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "status": True,
                "message": "SUCCESS",
                "data": {"jwtToken": "eyJhbGciOi", "refreshToken": "r", "feedToken": "f"},
            }

            token = await client.login_with_totp()

            assert token == "eyJhbGciOi"
            args, kwargs = mock_request.call_args
            assert args == ("POST", LOGIN_ENDPOINT)
            assert kwargs["data"] == {
                "clientcode": "A123456",
                "password": "1234",
                "totp": "287082",
            }
            headers = kwargs["headers"]
            assert headers["X-PrivateKey"] == "test_key"
            assert headers["X-UserType"] == "USER"
            assert headers["X-SourceID"] == "WEB"
            assert "X-MACAddress" in headers
            assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_login_rejected(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "status": False,
                "message": "Invalid totp",
                "errorcode": "AB1050",
                "data": None,
            }

            with pytest.raises(AuthenticationError, match="Login failed: Invalid totp"):
                await client.login("000000")

    @pytest.mark.asyncio
    async def test_login_without_message(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {}

            with pytest.raises(AuthenticationError, match="check credentials"):
                await client.login("000000")

    @pytest.mark.asyncio
    async def test_login_http_401_is_authentication_error(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = BrokerError("Invalid API key", status=401)

            with pytest.raises(AuthenticationError):
                await client.login("000000")

    @pytest.mark.asyncio
    async def test_login_server_error_stays_broker_error(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = BrokerError("API request failed", status=500)

            with pytest.raises(BrokerError) as exc_info:
                await client.login("000000")
            assert not isinstance(exc_info.value, AuthenticationError)

    @pytest.mark.asyncio
    async def test_search_scrip(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "data": [
                    {"exchange": "NSE", "tradingsymbol": "RELIANCE-EQ", "symboltoken": "2885"},
                    {"exchange": "NSE", "tradingsymbol": "RELIANCE-BL", "symboltoken": "17002"},
                ]
            }

            scrip = await client.search_scrip("jwt", "RELIANCE")

            assert scrip == SCRIP
            kwargs = mock_request.call_args.kwargs
            assert kwargs["params"] == {"exchange": "NSE", "searchscrip": "RELIANCE"}
            assert kwargs["headers"]["Authorization"] == "Bearer jwt"

    @pytest.mark.asyncio
    async def test_search_scrip_not_found(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"data": []}

            with pytest.raises(MarketDataError, match="Symbol not found: NOPE"):
                await client.search_scrip("jwt", "NOPE")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            {"data": [{"tradingsymbol": "RELIANCE-EQ"}]},
            {"data": [{"tradingsymbol": "RELIANCE-EQ", "symboltoken": ""}]},
            {"data": ["RELIANCE-EQ"]},
            {"data": {"tradingsymbol": "RELIANCE-EQ", "symboltoken": "2885"}},
            ["RELIANCE-EQ"],
        ],
    )
    async def test_search_scrip_malformed_match(self, client, response):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = response

            with pytest.raises(MarketDataError, match="Symbol not found: RELIANCE"):
                await client.search_scrip("jwt", "RELIANCE")

    @pytest.mark.asyncio
    async def test_quote(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "data": {
                    "fetched": [
                        {
                            "ltp": 2451.35,
                            "open": "2440.00",
                            "high": 2460.1,
                            "low": 2431.5,
                            "close": 2438.9,
                            "tradedVolume": 3456789,
                            "netChange": 12.45,
                            "percentChange": 0.51,
                        }
                    ]
                }
            }

            quote = await client.quote("jwt", SCRIP)

            assert quote.price == 2451.35
            assert quote.open == 2440.0
            assert quote.prev_close == 2438.9
            assert quote.volume == 3456789
            assert quote.to_dict()["symboltoken"] == "2885"
            args, kwargs = mock_request.call_args
            assert args == ("POST", QUOTE_ENDPOINT)
            assert kwargs["data"] == {"mode": "FULL", "exchangeTokens": {"NSE": ["2885"]}}

    @pytest.mark.asyncio
    async def test_quote_unavailable(self, client):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"data": {"fetched": [], "unfetched": [{}]}}

            with pytest.raises(MarketDataError, match="Quote unavailable"):
                await client.quote("jwt", SCRIP)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            {"data": {"fetched": ["2885"]}},
            {"data": {"fetched": {"ltp": 2451.35}}},
            {"data": [{"ltp": 2451.35}]},
            {"data": "unavailable"},
        ],
    )
    async def test_quote_malformed_payload(self, client, response):
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = response

            with pytest.raises(MarketDataError, match="Quote unavailable"):
                await client.quote("jwt", SCRIP)

    @pytest.mark.asyncio
    async def test_candles_parse_and_skip_malformed_rows(self, client):
        start = datetime(2025, 1, 2, 9, 15, tzinfo=IST)
        end = datetime(2025, 1, 2, 9, 47, tzinfo=IST)

        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "data": [
                    ["2025-01-02T09:25:00+05:30", 101, 103, 100, 102, 800],
                    ["2025-01-02T09:15:00+05:30", 100, 102, 99, 101, 1200],
                    ["garbage"],
                    ["2025-01-02T09:35:00+05:30", "x", 1, 1, 1, 1],
                ]
            }

            candles = await client.candles("jwt", SCRIP, "TEN_MINUTE", start, end)

            assert [c.close for c in candles] == [101.0, 102.0]  # sorted by ts
            assert candles[0].ts == start
            args, kwargs = mock_request.call_args
            assert args == ("POST", CANDLE_ENDPOINT)
            assert kwargs["data"] == {
                "exchange": "NSE",
                "symboltoken": "2885",
                "interval": "TEN_MINUTE",
                "fromdate": "2025-01-02 09:15",
                "todate": "2025-01-02 09:47",
            }

    @pytest.mark.asyncio
    async def test_candles_missing_data_is_empty(self, client):
        start = datetime(2025, 1, 2, 9, 15, tzinfo=IST)
        with patch.object(client, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"status": False, "data": None}

            assert await client.candles("jwt", SCRIP, "TEN_MINUTE", start, start) == []

    @pytest.mark.asyncio
    async def test_candles_rejects_inverted_range(self, client):
        start = datetime(2025, 1, 2, 9, 15, tzinfo=IST)
        with pytest.raises(ValueError, match="after end"):
            await client.candles("jwt", SCRIP, "TEN_MINUTE", start, start - timedelta(minutes=1))


class TestHttpRetries:
    @pytest_asyncio.fixture
    async def client(self):
        client = AngelOneClient(make_config(max_retries=2))
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_backoff_is_exponential(self, client):
        with patch("infra.brokers.base_http.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await client._backoff_sleep(0)
            await client._backoff_sleep(2)
            assert [c.args[0] for c in sleep.await_args_list] == [1.0, 4.0]

    @pytest.mark.asyncio
    async def test_timeout_is_retried_then_wrapped(self, client):
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()
        session.request.side_effect = asyncio.TimeoutError()
        client._session = session

        with patch("infra.brokers.base_http.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(BrokerError, match="HTTP request failed: TimeoutError") as exc_info:
                await client._http_request("GET", "/api/allIndices")

        assert exc_info.value.status is None
        assert session.request.call_count == 3  # first attempt + max_retries

    def test_latency_stats(self, client):
        assert client.get_latency_stats() == {"avg": 0.0, "max": 0.0, "p95": 0.0}
        for ms in (10.0, 20.0, 30.0):
            client._track_latency(ms)
        stats = client.get_latency_stats()
        assert stats["avg"] == 20.0
        assert stats["max"] == 30.0


class TestNseIndexFeed:
    @pytest_asyncio.fixture
    async def feed(self):
        feed = NseIndexFeed()
        yield feed
        await feed.close()

    @pytest.mark.asyncio
    async def test_vix(self, feed):
        with patch.object(feed, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "data": [
                    {"index": "NIFTY 50", "last": 23500.1},
                    {
                        "index": "INDIA VIX",
                        "last": 14.2575,
                        "percentChange": -3.12,
                        "high": 15.01,
                        "low": 13.9,
                    },
                ]
            }

            snapshot = await feed.vix()

            assert snapshot.vix == 14.2575
            assert snapshot.to_dict() == {
                "vix": 14.2575,
                "changePct": -3.12,
                "high": 15.01,
                "low": 13.9,
            }
            headers = mock_request.call_args.kwargs["headers"]
            assert headers["Referer"] == "https://www.nseindia.com/"

    @pytest.mark.asyncio
    async def test_malformed_entries_are_skipped(self, feed):
        with patch.object(feed, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "data": ["INDIA VIX", None, {"index": "INDIA VIX", "last": "14.1"}]
            }

            assert (await feed.vix()).vix == 14.1

    @pytest.mark.asyncio
    async def test_non_list_listing_has_no_vix(self, feed):
        with patch.object(feed, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"data": {"index": "INDIA VIX"}}

            with pytest.raises(MarketDataError, match="VIX not found"):
                await feed.vix()

    @pytest.mark.asyncio
    async def test_vix_not_found(self, feed):
        with patch.object(feed, "_http_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"data": [{"index": "NIFTY 50"}]}

            with pytest.raises(MarketDataError, match="VIX not found"):
                await feed.vix()
