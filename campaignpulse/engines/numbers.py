"""Lenient numeric coercion shared by the engines."""

import math
from typing import Optional


def as_float(value, default: float = 0.0) -> float:
    """
    Coerce a stored/JSON value to float.

    None, empty strings, booleans, NaN, infinities and anything that does not parse
    as a number come back as `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(num) or math.isinf(num):
        return default
    return num


def as_optional_float(value) -> Optional[float]:
    """Like as_float, but returns None for "not set" instead of a default."""
    if value is None:
        return None
    num = as_float(value, default=math.nan)
    return None if math.isnan(num) else num
