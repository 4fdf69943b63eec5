"""AdPulse — Canonical Row Models (Transient).

Every sheet row is normalized into ``NormalizedRow`` regardless of which
platform produced it, then folded into one ``AggregatedDay`` per date.
Neither model is persisted; they live for one sync pass.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Numeric fields shared by canonical rows and daily aggregates
NUMERIC_FIELDS = ("spend", "impressions", "clicks", "sales", "orders")


class NormalizedRow(BaseModel):
    """A sheet row after column-name and value normalization.

    ``date`` is either "" or YYYY-MM-DD. Columns the mapper does not know
    are kept in ``extra`` under their slugified name.
    """

    date: str = ""
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    sales: float = 0.0
    orders: float = 0.0
    campaign_name: str = ""
    city: Optional[str] = None
    brand: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class AggregatedDay(BaseModel):
    """Totals for one (date, platform, data_type) within one sync pass."""

    date: str
    platform: str
    data_type: str
    total_spend: float = 0.0
    total_impressions: float = 0.0
    total_clicks: float = 0.0
    total_sales: float = 0.0
    total_orders: float = 0.0


class DailyAggregate(BaseModel):
    """A pre-aggregated day as returned by the spreadsheet query path."""

    date: str
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    sales: float = 0.0
    orders: float = 0.0


class SyncResult(BaseModel):
    """Outcome of syncing one data source."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = False
    source_id: str
    source_name: str
    rows_fetched: int = 0
    days_aggregated: int = 0
    error: Optional[str] = None


class BatchSyncSummary(BaseModel):
    """Outcome of syncing every active source."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    results: List[SyncResult] = []

    @classmethod
    def from_results(cls, results: List[SyncResult]) -> "BatchSyncSummary":
        succeeded = sum(1 for r in results if r.success)
        return cls(
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            results=results,
        )
