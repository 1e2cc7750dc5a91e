"""Lenient numeric coercion for upstream payload fields.

Upstream APIs report numbers as JSON numbers, numeric strings, null, or
omit them entirely. Everything that is not a finite number becomes 0.
"""

import math
from typing import Any


def to_float(value: Any) -> float:
    """Coerce a raw value to a finite float, defaulting to 0.0.

    Example:
        to_float("1.5")   # 1.5
        to_float(None)    # 0.0
        to_float("nan")   # 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_non_negative(value: Any) -> float:
    """Coerce to float and clamp negatives to 0."""
    return max(to_float(value), 0.0)


def to_count(value: Any) -> int:
    """Coerce a raw value to a non-negative integer count."""
    return int(to_non_negative(value))


def to_txn_count(counts: Any) -> int:
    """Sum ``buys + sells`` of one window's counts; a non-mapping counts as 0.

    Example:
        to_txn_count({"buys": "3", "sells": 2})  # 5
        to_txn_count(None)                       # 0
    """
    if not isinstance(counts, dict):
        return 0
    return to_count(counts.get("buys")) + to_count(counts.get("sells"))
