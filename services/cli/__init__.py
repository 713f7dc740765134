"""
TradeSense gateway CLI

Command-line access to broker login, quotes, session indicators and India VIX.
"""

from .cli import app

__all__ = ["app"]
