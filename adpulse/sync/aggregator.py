"""AdPulse — Daily Aggregator.

Folds canonical rows into one ``AggregatedDay`` per date for a single
(platform, data_type). Rows must already have a valid date; filtering is
the caller's job.
"""

from collections import defaultdict
from typing import Dict, Iterable, List

from adpulse.core.logging import get_logger
from adpulse.models.normalized_models import (
    AggregatedDay,
    DailyAggregate,
    NormalizedRow,
)

logger = get_logger("sync.aggregator")


def aggregate_by_date(
    rows: Iterable[NormalizedRow], platform: str, data_type: str
) -> List[AggregatedDay]:
    """Sum spend, impressions, clicks, sales and orders per date.

    Output order is not guaranteed; sort by ``date`` if it matters.
    """
    by_date: Dict[str, AggregatedDay] = {}
    count_by_date: Dict[str, int] = defaultdict(int)

    for row in rows:
        day = by_date.get(row.date)
        if day is None:
            day = by_date[row.date] = AggregatedDay(
                date=row.date, platform=platform, data_type=data_type
            )
        count_by_date[row.date] += 1
        day.total_spend += row.spend
        day.total_impressions += row.impressions
        day.total_clicks += row.clicks
        day.total_sales += row.sales
        day.total_orders += row.orders

    logger.debug(
        "Row counts per date: "
        + ", ".join(f"{d}: {n}" for d, n in sorted(count_by_date.items()))
    )
    return list(by_date.values())


def from_daily_aggregates(
    aggregates: Iterable[DailyAggregate], platform: str, data_type: str
) -> List[AggregatedDay]:
    """Tag pre-aggregated query rows with their platform and data type."""
    return [
        AggregatedDay(
            date=agg.date,
            platform=platform,
            data_type=data_type,
            total_spend=agg.spend,
            total_impressions=agg.impressions,
            total_clicks=agg.clicks,
            total_sales=agg.sales,
            total_orders=agg.orders,
        )
        for agg in aggregates
    ]
