"""
Numeric helpers shared by the indicator and quote code paths.

Rounding follows ``Number.prototype.toFixed`` semantics: the float is converted
to its exact decimal expansion and rounded half-up, so results agree with
clients that compute the same indicators in a browser.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def round_half_up(value: float, places: int = 2) -> float:
    """Round ``value`` to ``places`` decimals, ties away from zero.

    Args:
        value: Raw float value
        places: Number of decimal places to keep

    Returns:
        Rounded float

    Examples:
        >>> round_half_up(13.0)
        13.0
        >>> round_half_up(0.125)
        0.13
        >>> round_half_up(1.005)  # 1.005 is stored as 1.00499999...
        1.0
    """
    if places < 0:
        raise ValueError("places must be non-negative")
    if not math.isfinite(value):
        return value

    # Decimal(float) is exact, which is what makes ties behave like toFixed
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce an upstream numeric field (number or numeric string) to float.

    Examples:
        >>> to_float("101.25")
        101.25
        >>> to_float(None)
        0.0
    """
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
