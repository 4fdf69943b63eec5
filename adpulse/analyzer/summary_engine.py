"""AdPulse — Metrics Summary Engine.

Read-side rollups over stored daily metrics: headline summary,
per-platform breakdown, daily trend and monthly totals.

Ads sheets and sales sheets measure different things. Spend, impressions
and clicks only come from ads rows. Sales is the sum of ads-attributed GMV
and product GMV from sales sheets; the two are added, not deduplicated.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlmodel import Session

from adpulse.models.analysis_models import (
    MetricsSummary,
    MonthlySummary,
    PlatformMetrics,
    TrendPoint,
)
from adpulse.models.metric_models import DailyMetric
from adpulse.storage.repository import get_daily_metrics
from adpulse.core.logging import get_logger

logger = get_logger("analyzer.summary")


def _safe_div(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def summarize(metrics: Iterable[DailyMetric]) -> MetricsSummary:
    """Headline totals and ratios for a set of daily metric rows."""
    spend = impressions = clicks = ads_sales = 0.0
    product_sales = orders = 0.0

    for m in metrics:
        if m.data_type == "ads":
            spend += m.total_spend or 0
            impressions += m.total_impressions or 0
            clicks += m.total_clicks or 0
            ads_sales += m.total_sales or 0
        elif m.data_type == "sales":
            product_sales += m.total_sales or 0
            orders += m.total_orders or 0

    combined_sales = ads_sales + product_sales
    return MetricsSummary(
        total_spend=spend,
        total_impressions=impressions,
        total_clicks=clicks,
        total_sales=combined_sales,
        total_ads_sales=ads_sales,
        total_product_sales=product_sales,
        total_orders=orders,
        avg_cpi=_safe_div(spend, impressions),
        avg_ctr=_safe_div(clicks, impressions) * 100,
        avg_roas=_safe_div(combined_sales, spend),
    )


def breakdown_by_platform(metrics: Iterable[DailyMetric]) -> List[PlatformMetrics]:
    """Per-platform totals across all data types, highest spend first."""
    sums: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for m in metrics:
        sums[m.platform]["spend"] += m.total_spend or 0
        sums[m.platform]["sales"] += m.total_sales or 0
        sums[m.platform]["impressions"] += m.total_impressions or 0

    platforms = [
        PlatformMetrics(
            platform=platform,
            total_spend=s["spend"],
            total_sales=s["sales"],
            total_impressions=s["impressions"],
            roas=_safe_div(s["sales"], s["spend"]),
        )
        for platform, s in sums.items()
    ]
    return sorted(platforms, key=lambda p: p.total_spend, reverse=True)


def daily_trend(metrics: Iterable[DailyMetric]) -> List[TrendPoint]:
    """Totals per date across platforms, oldest first."""
    sums: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for m in metrics:
        sums[m.date]["spend"] += m.total_spend or 0
        sums[m.date]["sales"] += m.total_sales or 0
        sums[m.date]["impressions"] += m.total_impressions or 0
        sums[m.date]["clicks"] += m.total_clicks or 0

    return [
        TrendPoint(date=date, **s) for date, s in sorted(sums.items())
    ]


def monthly_rollup(metrics: Iterable[DailyMetric]) -> List[MonthlySummary]:
    """Totals per (YYYY-MM, platform), newest month first."""
    sums: Dict[tuple[str, str], Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for m in metrics:
        key = (m.date[:7], m.platform)
        sums[key]["spend"] += m.total_spend or 0
        sums[key]["impressions"] += m.total_impressions or 0
        sums[key]["clicks"] += m.total_clicks or 0
        sums[key]["sales"] += m.total_sales or 0
        sums[key]["orders"] += m.total_orders or 0

    rows = [
        MonthlySummary(
            month=month,
            platform=platform,
            total_spend=s["spend"],
            total_impressions=s["impressions"],
            total_clicks=s["clicks"],
            total_sales=s["sales"],
            total_orders=s["orders"],
            avg_cpi=_safe_div(s["spend"], s["impressions"]),
            avg_ctr=_safe_div(s["clicks"], s["impressions"]) * 100,
            avg_roas=_safe_div(s["sales"], s["spend"]),
        )
        for (month, platform), s in sums.items()
    ]
    return sorted(rows, key=lambda r: (r.month, r.platform), reverse=True)


# ── Session-backed entry points ──


def get_metrics_summary(
    session: Session, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> MetricsSummary:
    return summarize(get_daily_metrics(session, start_date, end_date))


def get_metrics_by_platform(
    session: Session, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> List[PlatformMetrics]:
    return breakdown_by_platform(get_daily_metrics(session, start_date, end_date))


def get_daily_trend(
    session: Session, start_date: Optional[str] = None, end_date: Optional[str] = None
) -> List[TrendPoint]:
    return daily_trend(get_daily_metrics(session, start_date, end_date))


def get_ads_metrics(
    session: Session,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    platform: Optional[str] = None,
) -> List[DailyMetric]:
    """Ads-only daily rows, oldest first."""
    rows = get_daily_metrics(session, start_date, end_date, platform, data_type="ads")
    return sorted(rows, key=lambda m: m.date)


def get_monthly_summary(
    session: Session,
    start_month: Optional[str] = None,
    end_month: Optional[str] = None,
    platform: Optional[str] = None,
) -> List[MonthlySummary]:
    """Monthly totals; months are YYYY-MM and both bounds are inclusive."""
    start_date = f"{start_month}-01" if start_month else None
    end_date = f"{end_month}-31" if end_month else None
    rows = monthly_rollup(get_daily_metrics(session, start_date, end_date, platform))
    logger.info(f"Computed {len(rows)} monthly summary rows")
    return rows
