"""AdPulse — Column Mapper & Row Normalizer.

Maps arbitrary sheet headers onto the canonical row fields and converts a
raw sheet row into a ``NormalizedRow``.

The mapping table for a sync is an immutable snapshot built fresh from the
default table plus the platform's stored overrides; nothing shared is ever
mutated.
"""

import re
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

from sqlmodel import Session

from adpulse.core.column_registry import (
    ADS_INDICATORS,
    DEFAULT_MAPPINGS,
    SALES_INDICATORS,
)
from adpulse.core.logging import get_logger
from adpulse.models.normalized_models import NormalizedRow
from adpulse.normalizer.dates import normalize_date
from adpulse.normalizer.numbers import parse_numeric
from adpulse.storage.repository import get_column_mappings

logger = get_logger("normalizer.columns")

ColumnMap = Mapping[str, str]

_WHITESPACE = re.compile(r"\s+")
_SUMMED_FIELDS = ("spend", "impressions", "clicks", "orders")


def resolve_mapping(
    overrides: Iterable[Any] = (),
    data_type: str | None = None,
    defaults: Mapping[str, str] = DEFAULT_MAPPINGS,
) -> ColumnMap:
    """Merge override rows over the defaults into a read-only table.

    ``overrides`` are ColumnMapping-like objects (``source_column``,
    ``target_column``, ``data_type``, ``is_active``). When ``data_type`` is
    given, overrides for the other data type are ignored. Later overrides
    win over earlier ones and over the defaults; keys are lower-cased.
    """
    table: Dict[str, str] = {k.lower(): v for k, v in defaults.items()}
    for cm in overrides:
        if not getattr(cm, "is_active", True):
            continue
        cm_type = getattr(cm.data_type, "value", cm.data_type)
        if data_type is not None and cm_type != data_type:
            continue
        table[cm.source_column.strip().lower()] = cm.target_column
    return MappingProxyType(table)


def build_mapper(session: Session, platform: str, data_type: str) -> ColumnMap:
    """Build the mapping snapshot for one (platform, data_type) from the DB.

    If the overrides can't be read the defaults are used on their own.
    """
    try:
        overrides = get_column_mappings(session, platform, data_type)
    except Exception as e:
        logger.error(
            f"Failed to fetch custom mappings for {platform}/{data_type}: {e}",
            extra={"platform": platform, "data_type": data_type},
        )
        overrides = []
    mapper = resolve_mapping(overrides, data_type)
    logger.info(
        f"Built column mapper for {platform}/{data_type}: "
        f"{len(mapper)} entries ({len(overrides)} custom)"
    )
    return mapper


def normalize_column_name(name: str, mappings: ColumnMap) -> str:
    """Resolve a header to its canonical field, or a slug of the header."""
    lower = str(name).strip().lower()
    return mappings.get(lower) or _WHITESPACE.sub("_", lower)


def normalize_row(row: Mapping[str, Any], mappings: ColumnMap) -> NormalizedRow:
    """Convert one raw sheet row into the canonical shape. Never raises.

    Numeric fields that appear more than once are summed, except ``sales``:
    some sheets carry several GMV columns (e.g. 7- and 14-day attribution)
    and only the first positive one is kept.
    """
    normalized = NormalizedRow()

    for key, value in row.items():
        target = normalize_column_name(key, mappings)

        if target == "date":
            normalized.date = normalize_date(value)
        elif target in _SUMMED_FIELDS:
            setattr(normalized, target, getattr(normalized, target) + parse_numeric(value))
        elif target == "sales":
            sales_value = parse_numeric(value)
            if sales_value > 0 and normalized.sales == 0:
                normalized.sales = sales_value
        elif target == "campaign_name":
            normalized.campaign_name = "" if value is None else str(value)
        elif target == "city":
            normalized.city = "" if value is None else str(value)
        elif target == "brand":
            normalized.brand = "" if value is None else str(value)
        else:
            normalized.extra[target] = value

    return normalized


def detect_data_type(headers: Iterable[str]) -> str:
    """Guess whether a sheet holds ads or sales data from its headers."""
    lower_headers = [h.lower() for h in headers]

    ads_score = sum(
        1 for ind in ADS_INDICATORS if any(ind in h for h in lower_headers)
    )
    sales_score = sum(
        1 for ind in SALES_INDICATORS if any(ind in h for h in lower_headers)
    )
    return "ads" if ads_score >= sales_score else "sales"


def suggest_mappings(headers: Iterable[str]) -> List[Dict[str, str]]:
    """Propose canonical targets for sheet headers.

    Exact default-table hits are ``high`` confidence; a substring match
    either way is ``medium``. Headers with neither are left out.
    """
    suggestions: List[Dict[str, str]] = []

    for header in headers:
        lower = header.strip().lower()
        if not lower:
            continue
        mapped = DEFAULT_MAPPINGS.get(lower)
        if mapped:
            suggestions.append(
                {"source": header, "target": mapped, "confidence": "high"}
            )
            continue
        for pattern, target in DEFAULT_MAPPINGS.items():
            if pattern in lower or lower in pattern:
                suggestions.append(
                    {"source": header, "target": target, "confidence": "medium"}
                )
                break

    return suggestions
