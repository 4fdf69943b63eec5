"""AdPulse — Numeric Normalizer."""

import math
import re
from typing import Any

_STRIP = re.compile(r"[₹$,\s]")
# Leading numeric prefix, so "12.5%" reads as 12.5
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_numeric(value: Any) -> float:
    """Best-effort number from a sheet cell.

    Strips currency symbols, thousands separators and whitespace.
    Anything unreadable, empty or non-finite becomes 0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    cleaned = _STRIP.sub("", str(value))
    match = _NUMBER_PREFIX.match(cleaned)
    if not match:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0
