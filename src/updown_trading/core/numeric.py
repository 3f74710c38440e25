"""Small numeric helpers shared by factors, combiner and sizing."""

from __future__ import annotations

import math
import re

_TIMEFRAME_RE = re.compile(r"^(\d+)([mhd])$")
_UNIT_SECONDS = {"m": 60, "h": 3600, "d": 86400}


def clamp(x: float, lo: float, hi: float) -> float:
    """Bound x to [lo, hi]."""
    return max(lo, min(hi, x))


def finite_or(x: float, default: float = 0.0) -> float:
    """Return x unless it is NaN, infinite or not a number, in which case return default."""
    try:
        value = float(x)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def parse_timeframe(timeframe: str) -> int:
    """Bar width in seconds for a ccxt-style timeframe.

    Examples:
        >>> parse_timeframe("15m")
        900
        >>> parse_timeframe("1h")
        3600

    Raises:
        ValueError: For anything other than <count><m|h|d> with a positive count
    """
    match = _TIMEFRAME_RE.match(timeframe.strip().lower())
    if match is None or int(match.group(1)) == 0:
        raise ValueError(f"Unsupported bar timeframe '{timeframe}', expected e.g. '5m', '15m', '1h', '1d'")
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


__all__ = ["clamp", "finite_or", "parse_timeframe"]
