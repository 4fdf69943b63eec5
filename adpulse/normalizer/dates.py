"""AdPulse — Date Normalizer.

Turns the date encodings seen across platform sheets into YYYY-MM-DD.
Patterns are tried in a fixed order; the first that matches wins. An empty
string means "could not parse" and the caller drops the row.

Ambiguous numeric dates (both parts <= 12) are resolved by separator:

    05/06/2024  →  2024-05-06   slash: month first (US export format)
    05-06-2024  →  2024-06-05   hyphen/dot: day first (Indian format)

Historical aggregates were computed with these defaults, so they must not
change without a backfill.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as date_parser

from adpulse.core.logging import get_logger

logger = get_logger("normalizer.dates")

MONTH_PREFIXES = [
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
]

EMPTY_MARKERS = {"", "null", "undefined"}

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2})T")
MONTH_NAME_FIRST = re.compile(r"^([A-Za-z]+)\s+(\d{1,2}),?\s*(\d{4})$")
DAY_FIRST_MONTH_NAME = re.compile(r"^(\d{1,2})[\s\-]([A-Za-z]+)[\s\-](\d{4})$")
MONTH_YEAR = re.compile(r"^([A-Za-z]{3})-(\d{2})$")
SLASH_DATE = re.compile(r"^(\d{1,2})[\\/]+(\d{1,2})[\\/]+(\d{4})$")
HYPHEN_DOT_DATE = re.compile(r"^(\d{1,2})[\-.](\d{1,2})[\-.](\d{4})$")
YEAR_FIRST = re.compile(r"^(\d{4})[\\/\-.](\d{1,2})[\\/\-.](\d{1,2})$")
BARE_NUMBER = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
COMPACT_DATE = re.compile(r"^\d{8}$")

# Missing fields in the generic fallback resolve against this, not "today"
_FALLBACK_DEFAULT = datetime(2000, 1, 1)


def is_iso_date(value: str) -> bool:
    """True if ``value`` is a real calendar date in YYYY-MM-DD form."""
    if not value or not ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _ymd(year: Any, month: Any, day: Any) -> str:
    """YYYY-MM-DD for the given parts; ValueError if no such day exists."""
    return date(int(year), int(month), int(day)).isoformat()


def _month_index(name: str) -> Optional[int]:
    """1-based month for a name whose first three letters match."""
    lower = name.lower()
    for i, prefix in enumerate(MONTH_PREFIXES):
        if lower.startswith(prefix):
            return i + 1
    return None


def _disambiguate(first: int, second: int, year: str, day_first_default: bool) -> str:
    if first > 12:
        return _ymd(year, second, first)
    if second > 12:
        return _ymd(year, first, second)
    if day_first_default:
        return _ymd(year, second, first)
    return _ymd(year, first, second)


def _parse(trimmed: str) -> Optional[str]:
    """Apply the rule table. Raises ValueError when a rule matches but the
    parts don't form a calendar date."""
    if ISO_DATE.match(trimmed):
        return _ymd(*trimmed.split("-"))

    # 2024-12-24T00:00:00.000Z
    m = ISO_DATETIME.match(trimmed)
    if m:
        return _ymd(*m.group(1).split("-"))

    # Dec 24, 2024 / December 24 2024
    m = MONTH_NAME_FIRST.match(trimmed)
    if m:
        month = _month_index(m.group(1))
        if month is not None:
            return _ymd(m.group(3), month, m.group(2))

    # 24 Dec 2024 / 24-Dec-2024
    m = DAY_FIRST_MONTH_NAME.match(trimmed)
    if m:
        month = _month_index(m.group(2))
        if month is not None:
            return _ymd(m.group(3), month, m.group(1))

    # Nov-25 → first of the month
    m = MONTH_YEAR.match(trimmed)
    if m:
        lower = m.group(1).lower()
        if lower in MONTH_PREFIXES:
            return _ymd(2000 + int(m.group(2)), MONTH_PREFIXES.index(lower) + 1, 1)

    m = SLASH_DATE.match(trimmed)
    if m:
        first, second = int(m.group(1)), int(m.group(2))
        result = _disambiguate(first, second, m.group(3), day_first_default=False)
        if first <= 12 and second <= 12:
            logger.debug(f"Ambiguous date '{trimmed}' -> {result} (assumed MM/DD)")
        return result

    m = HYPHEN_DOT_DATE.match(trimmed)
    if m:
        first, second = int(m.group(1)), int(m.group(2))
        result = _disambiguate(first, second, m.group(3), day_first_default=True)
        if first <= 12 and second <= 12:
            logger.debug(f"Ambiguous date '{trimmed}' -> {result} (assumed DD-MM)")
        return result

    m = YEAR_FIRST.match(trimmed)
    if m:
        return _ymd(m.group(1), m.group(2), m.group(3))

    # Counts and totals ("5", "1234.5") are not dates; 20241224 is
    if BARE_NUMBER.match(trimmed) and not COMPACT_DATE.match(trimmed):
        return None

    try:
        return date_parser.parse(trimmed, default=_FALLBACK_DEFAULT).date().isoformat()
    except (ValueError, OverflowError):
        return None


def normalize_date(raw: Any) -> str:
    """Parse a sheet date cell into YYYY-MM-DD, or "" if it can't be read.

    Impossible days such as 31/02/2024 count as unreadable. Never raises.
    """
    if raw is None:
        return ""
    trimmed = str(raw).strip()
    if trimmed in EMPTY_MARKERS:
        return ""

    try:
        result = _parse(trimmed)
    except ValueError:
        logger.warning(f"Not a calendar date: '{trimmed}'")
        return ""

    if result:
        return result
    logger.warning(f"Could not parse date: '{trimmed}'")
    return ""
