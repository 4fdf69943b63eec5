"""AdPulse — Server-side Sheet Aggregation.

Lets Google do the SUM / GROUP BY instead of downloading every row:

  1. read the header labels (``SELECT * LIMIT 0``)
  2. find the column letter for each metric by header name
  3. ``SELECT date, SUM(..) ... GROUP BY date``
  4. parse the grouped rows into ``DailyAggregate`` records
"""

import re
from typing import Any, Dict, List, Optional, Sequence

from adpulse.connectors.sheets.client import SheetsAPIError, SheetsClient
from adpulse.core.column_registry import QUERY_COLUMN_VARIANTS, QUERY_METRICS_BY_TYPE
from adpulse.core.logging import get_logger
from adpulse.models.normalized_models import DailyAggregate
from adpulse.normalizer.dates import is_iso_date, normalize_date

logger = get_logger("sheets.query")

_GVIZ_DATE = re.compile(r"Date\((\d+),(\d+),(\d+)")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


class SheetsQueryError(SheetsAPIError):
    """Raised when a gviz query can't be built or the sheet rejects it."""


def column_letter(index: int) -> str:
    """0 → A, 25 → Z, 26 → AA."""
    result = ""
    temp = index
    while temp >= 0:
        result = chr(temp % 26 + 65) + result
        temp = temp // 26 - 1
    return result


def find_column_letter(headers: Sequence[str], names: Sequence[str]) -> Optional[str]:
    """Letter of the first header matching any of ``names`` (case-insensitive)."""
    wanted = {n.upper() for n in names}
    for i, header in enumerate(headers):
        if (header or "").strip().upper() in wanted:
            return column_letter(i)
    return None


def build_aggregate_query(
    date_col: str, metric_cols: Dict[str, Optional[str]], data_type: str
) -> tuple[str, List[str]]:
    """Build the GROUP BY query; returns it with the summed metric order."""
    select_parts = [date_col]
    summed: List[str] = []
    for metric in QUERY_METRICS_BY_TYPE.get(data_type, QUERY_METRICS_BY_TYPE["sales"]):
        col = metric_cols.get(metric)
        if col:
            select_parts.append(f"SUM({col})")
            summed.append(metric)
    query = (
        f"SELECT {', '.join(select_parts)} WHERE {date_col} IS NOT NULL "
        f"GROUP BY {date_col} ORDER BY {date_col}"
    )
    return query, summed


def _parse_cell_number(cell: Optional[Dict[str, Any]]) -> float:
    if not cell or cell.get("v") is None:
        return 0.0
    value = cell["v"]
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(re.sub(r"[₹$,]", "", str(value)))
    except ValueError:
        return 0.0


def _parse_date_string(value: str) -> Optional[str]:
    if is_iso_date(value):
        return value
    m = _SLASH_DATE.match(value)
    if m:
        first, second, year = int(m.group(1)), int(m.group(2)), m.group(3)
        if first > 12:
            candidate = f"{year}-{second:02d}-{first:02d}"
        else:
            # Month first otherwise, matching the CSV path's slash rule
            candidate = f"{year}-{first:02d}-{second:02d}"
        return candidate if is_iso_date(candidate) else None
    return normalize_date(value) or None


def parse_cell_date(value: Any, formatted: Optional[str] = None) -> str:
    """YYYY-MM-DD from a gviz date cell, or "".

    The formatted value is tried first, then the raw value, which may be
    the gviz ``Date(year, month0, day)`` encoding.
    """
    if not value:
        return ""
    if isinstance(formatted, str):
        parsed = _parse_date_string(formatted.strip())
        if parsed:
            return parsed
    if isinstance(value, str):
        m = _GVIZ_DATE.search(value)
        if m:
            candidate = f"{m.group(1)}-{int(m.group(2)) + 1:02d}-{int(m.group(3)):02d}"
            return candidate if is_iso_date(candidate) else ""
        return _parse_date_string(value.strip()) or ""
    return ""


def _raise_on_error(payload: Dict[str, Any], fallback: str) -> None:
    if payload.get("status") != "error":
        return
    errors = payload.get("errors") or []
    details = "; ".join(
        e.get("detailed_message") or e.get("message") or "" for e in errors
    )
    raise SheetsQueryError(details or fallback)


class SheetsQuery:
    """Pre-aggregated daily sums straight from a sheet."""

    def __init__(self, client: SheetsClient):
        self.client = client

    async def fetch_headers(self, sheet_id: str, gid: str | None = None) -> List[str]:
        payload = await self.client.gviz(sheet_id, "SELECT * LIMIT 0", gid)
        _raise_on_error(payload, "Failed to get headers")
        cols = (payload.get("table") or {}).get("cols") or []
        return [c.get("label") or "" for c in cols]

    async def fetch_daily_aggregates(
        self, sheet_id: str, data_type: str = "ads", gid: str | None = None
    ) -> List[DailyAggregate]:
        """Run the detect-then-aggregate query for one tab."""
        headers = await self.fetch_headers(sheet_id, gid)
        logger.info(f"Found headers: {', '.join(headers[:10])}")

        date_col = find_column_letter(headers, QUERY_COLUMN_VARIANTS["date"])
        metric_cols = {
            metric: find_column_letter(headers, names)
            for metric, names in QUERY_COLUMN_VARIANTS.items()
            if metric != "date"
        }
        logger.info(f"Detected columns: date={date_col}, {metric_cols}")

        if not date_col:
            raise SheetsQueryError(
                f"Could not find date column. Available headers: {', '.join(headers[:15])}"
            )

        query, summed = build_aggregate_query(date_col, metric_cols, data_type)
        logger.info(f"Query: {query}")

        payload = await self.client.gviz(sheet_id, query, gid)
        _raise_on_error(payload, "Query error")

        rows = (payload.get("table") or {}).get("rows") or []
        aggregates: List[DailyAggregate] = []
        for row in rows:
            cells = row.get("c") or []
            if not cells or not cells[0] or cells[0].get("v") is None:
                continue
            date = parse_cell_date(cells[0].get("v"), cells[0].get("f"))
            if not date:
                continue
            values = {
                metric: _parse_cell_number(cells[i + 1] if i + 1 < len(cells) else None)
                for i, metric in enumerate(summed)
            }
            aggregates.append(DailyAggregate(date=date, **values))

        logger.info(
            f"Parsed {len(aggregates)} daily aggregates from {len(rows)} rows",
            extra={"days": len(aggregates)},
        )
        return aggregates
