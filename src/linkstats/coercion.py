"""
Numeric coercion and aliased-key lookup.

Upstream payloads spell the same field several ways (``totalClicks`` vs
``total_clicks``) and send numbers as numbers, numeric strings, booleans or
garbage. Every recognizer goes through these helpers so that the rule is
the same everywhere:

- Take the first *present* aliased key (present = key exists and is not None)
- Coerce it to a number
- Anything that is not a finite number becomes 0

NaN and infinity never leave this module. Integers too large for a float are
treated like infinity, and counts are capped at the largest integer a JSON
client can represent exactly, so sums of counts always fit in a float.
"""

import math
import sys
from collections.abc import Mapping
from typing import Any

from .core.models import HOURS_PER_DAY

# Sentinel for "no aliased key was present"
MISSING = object()

# Number.MAX_SAFE_INTEGER
MAX_COUNT = 2**53 - 1


def first_present(source: Any, *keys: str, default: Any = None) -> Any:
    """Get the value of the first key that exists and is not None."""
    if not isinstance(source, Mapping):
        return default
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return default


def has_any(source: Any, *keys: str) -> bool:
    """Check whether any of the keys is present (and not None)."""
    return first_present(source, *keys, default=MISSING) is not MISSING


def to_number(value: Any) -> float:
    """
    Coerce a value to a finite number.

    Mirrors numeric conversion of loosely typed JSON:
        True -> 1, False -> 0, "12" -> 12, " 3.5 " -> 3.5, "" -> 0

    Returns 0 for None, non-numeric strings, containers, NaN and infinity.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return value if abs(value) <= sys.float_info.max else 0
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0
        if not math.isfinite(number):
            return 0
        return int(number) if number.is_integer() else number
    return 0


def to_count(value: Any) -> int:
    """Coerce a value to a non-negative integer count, capped at MAX_COUNT."""
    number = to_number(value)
    if number <= 0:
        return 0
    return min(int(round(number)), MAX_COUNT)


def first_count(source: Any, *keys: str) -> int:
    """Coerce the first present aliased key to a count, defaulting to 0."""
    return to_count(first_present(source, *keys))


def to_hour(value: Any) -> int | None:
    """Parse an hour-of-day key (7, 7.0, "7"); None unless it is an integer in 0-23."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            return None
        value = int(text)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and 0 <= value < HOURS_PER_DAY:
        return value
    return None


def to_histogram(source: Any) -> list[int]:
    """
    Coerce an hour-indexed structure into a 24-slot count list.

    Accepts a sequence indexed by hour (slots past 23 are ignored) or a
    mapping of hour -> count. Counts for the same hour accumulate.
    """
    histogram = [0] * HOURS_PER_DAY
    if isinstance(source, Mapping):
        items = source.items()
    elif isinstance(source, (list, tuple)):
        items = enumerate(source[:HOURS_PER_DAY])
    else:
        return histogram

    for key, value in items:
        hour = to_hour(key)
        if hour is not None:
            histogram[hour] += to_count(value)
    return histogram


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp a value to [lower, upper]."""
    return max(lower, min(upper, value))


def share_of_total(count: float, total: float) -> float:
    """Percentage of total in [0, 100], one decimal, guarded against a zero total."""
    return round(clamp(count / max(total, 1) * 100, 0, 100), 1)
