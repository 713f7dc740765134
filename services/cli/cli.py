"""
Command-line interface for the market gateway.

Each command prints one JSON envelope on stdout and exits non-zero on
failure, so the output can be piped straight into other tools.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import typer

from core.auth import AuthenticationError, TOTPGenerator
from infra.brokers import BrokerError

from ..gateway import MarketGateway
from ..models import Envelope

# Initialize Typer app
app = typer.Typer(
    name="tradesense",
    help="TradeSense market gateway: broker login, quotes and indicators",
    add_completion=False,
)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure root logging; logs go to stderr so stdout stays JSON."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )


def _emit(envelope: Envelope) -> None:
    typer.echo(envelope.to_json())
    if not envelope.success:
        raise typer.Exit(1)


def _run(operation: Callable[[MarketGateway], Awaitable[Any]]) -> None:
    """Run ``operation`` against a gateway built from the environment."""

    async def _main() -> Any:
        async with MarketGateway.from_env() as gateway:
            return await operation(gateway)

    try:
        data = asyncio.run(_main())
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        _emit(Envelope.fail(e.message))
    except BrokerError as e:
        _emit(Envelope.fail(e.message))
    except ValueError as e:
        # settings validation (missing credentials, bad timezone, ...)
        _emit(Envelope.fail(f"Configuration error: {e}"))
    except Exception as e:
        logger.exception("Unhandled error")
        _emit(Envelope.fail(f"Server error: {str(e) or type(e).__name__}"))
    else:
        _emit(Envelope.ok(data))


def _mask(token: str) -> str:
    return f"{token[:8]}…" if len(token) > 8 else "…"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    setup_logging(verbose)


@app.command()
def totp(
    secret: str = typer.Option(
        ..., "--secret", envvar="ANGEL_TOTP_SECRET", help="Base32 TOTP secret"
    ),
    at: float | None = typer.Option(
        None, "--at", help="Unix time to generate for (defaults to now)"
    ),
) -> None:
    """Print the TOTP code for the current (or given) 30-second window."""
    generator = TOTPGenerator()
    _emit(
        Envelope.ok(
            {
                "code": generator.generate(secret, at),
                "step": generator.time_step(at),
                "secondsRemaining": generator.seconds_remaining(at),
            }
        )
    )


@app.command()
def token(
    show: bool = typer.Option(False, "--show", help="Print the full token"),
    refresh: bool = typer.Option(False, "--refresh", help="Force a new login"),
) -> None:
    """Obtain the broker session token (cached for 23 hours)."""

    async def op(gateway: MarketGateway) -> dict[str, Any]:
        if refresh:
            await gateway.tokens.clear(gateway.config.token_key)
        value = await gateway.token()
        return {"token": value if show else _mask(value)}

    _run(op)


@app.command("clear-token")
def clear_token() -> None:
    """Evict the cached session token."""

    async def op(gateway: MarketGateway) -> dict[str, Any]:
        await gateway.tokens.clear(gateway.config.token_key)
        return {"cleared": gateway.config.token_key}

    _run(op)


@app.command()
def quote(
    symbol: str = typer.Argument(..., help="Trading symbol, e.g. RELIANCE"),
    exchange: str | None = typer.Option(None, "--exchange", "-e", help="Exchange (NSE)"),
) -> None:
    """Live quote for SYMBOL."""

    async def op(gateway: MarketGateway) -> dict[str, Any]:
        return (await gateway.quote(symbol, exchange)).to_dict()

    _run(op)


@app.command()
def indicators(
    symbol: str = typer.Argument(..., help="Trading symbol, e.g. RELIANCE"),
    exchange: str | None = typer.Option(None, "--exchange", "-e", help="Exchange (NSE)"),
    interval: str | None = typer.Option(
        None, "--interval", "-i", help="Candle interval (TEN_MINUTE)"
    ),
) -> None:
    """Session VWAP and RSI for SYMBOL."""

    async def op(gateway: MarketGateway) -> dict[str, Any]:
        return (await gateway.indicators(symbol, exchange, interval)).to_dict()

    _run(op)


@app.command()
def vix() -> None:
    """India VIX level."""

    async def op(gateway: MarketGateway) -> dict[str, Any]:
        return (await gateway.vix()).to_dict()

    _run(op)


@app.command()
def health() -> None:
    """Gateway liveness and token cache state."""

    async def op(gateway: MarketGateway) -> dict[str, Any]:
        return (await gateway.health()).model_dump(mode="json")

    _run(op)
