"""Numeric coercion helpers shared by the capacity calculations.

Backend payloads hand us ints, floats, numeric strings, ``None`` and the
occasional NaN. Everything goes through these helpers so that a bad value
becomes ``None`` instead of an exception.
"""

import math
from typing import Any


def to_finite_number(value: Any) -> float | None:
    """Coerce a backend value to a finite float.

    Returns:
        The number, or None for None, booleans, unparseable strings,
        NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_non_negative(value: Any) -> float | None:
    """Finite number clamped at zero, or None."""
    number = to_finite_number(value)
    if number is None:
        return None
    return max(0.0, number)


def to_count(value: Any) -> int:
    """Row/object counts: anything invalid or negative becomes 0."""
    number = to_finite_number(value)
    if number is None or number <= 0:
        return 0
    return int(number)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def percent_of(part: float, whole: float | None) -> float | None:
    """``part / whole`` as a percentage with two decimals, or None if undefined."""
    if whole is None or whole <= 0:
        return None
    return round(part / whole * 100, 2)
