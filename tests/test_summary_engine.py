"""
Tests for the metrics summary engine.
"""

import pytest

from adpulse.analyzer import summary_engine
from adpulse.analyzer.summary_engine import (
    breakdown_by_platform,
    daily_trend,
    monthly_rollup,
    summarize,
)
from adpulse.models.metric_models import DailyMetric
from adpulse.models.normalized_models import AggregatedDay
from adpulse.storage.repository import upsert_daily_metrics_batch


def _metric(date, platform, data_type, spend=0, impressions=0, clicks=0, sales=0, orders=0):
    return DailyMetric(
        date=date,
        platform=platform,
        data_type=data_type,
        total_spend=spend,
        total_impressions=impressions,
        total_clicks=clicks,
        total_sales=sales,
        total_orders=orders,
    )


METRICS = [
    _metric("2024-11-01", "swiggy", "ads", spend=100, impressions=10000, clicks=200, sales=400),
    _metric("2024-11-02", "zepto", "ads", spend=300, impressions=10000, clicks=100, sales=600),
    _metric("2024-11-01", "swiggy", "sales", sales=1000, orders=20),
    _metric("2024-10-15", "swiggy", "ads", spend=50, impressions=1000, clicks=10, sales=0),
]


def test_summary_adds_ads_and_product_sales():
    summary = summarize(METRICS)
    assert summary.total_spend == 450
    assert summary.total_impressions == 21000
    assert summary.total_clicks == 310
    assert summary.total_ads_sales == 1000
    assert summary.total_product_sales == 1000
    assert summary.total_sales == 2000
    assert summary.total_orders == 20
    assert summary.avg_roas == pytest.approx(2000 / 450)
    assert summary.avg_ctr == pytest.approx(310 / 21000 * 100)
    assert summary.avg_cpi == pytest.approx(450 / 21000)


def test_summary_with_no_spend_has_zero_ratios():
    summary = summarize([_metric("2024-11-01", "blinkit", "sales", sales=500, orders=5)])
    assert summary.total_sales == 500
    assert (summary.avg_roas, summary.avg_cpi, summary.avg_ctr) == (0, 0, 0)


def test_summary_serializes_camel_case():
    body = summarize([]).model_dump(by_alias=True)
    assert body["totalSpend"] == 0
    assert body["avgRoas"] == 0
    assert "totalProductSales" in body


def test_platform_breakdown_sorted_by_spend():
    platforms = breakdown_by_platform(METRICS)
    assert [p.platform for p in platforms] == ["zepto", "swiggy"]
    swiggy = platforms[1]
    assert swiggy.total_spend == 150
    assert swiggy.total_sales == 1400
    assert swiggy.roas == pytest.approx(1400 / 150)


def test_daily_trend_oldest_first():
    trend = daily_trend(METRICS)
    assert [p.date for p in trend] == ["2024-10-15", "2024-11-01", "2024-11-02"]
    assert trend[1].sales == 1400
    assert trend[1].clicks == 200


def test_monthly_rollup_newest_first():
    rows = monthly_rollup(METRICS)
    assert [(r.month, r.platform) for r in rows] == [
        ("2024-11", "zepto"),
        ("2024-11", "swiggy"),
        ("2024-10", "swiggy"),
    ]
    november_swiggy = rows[1]
    assert november_swiggy.total_sales == 1400
    assert november_swiggy.total_orders == 20
    assert november_swiggy.avg_ctr == pytest.approx(2.0)


def _store(session):
    upsert_daily_metrics_batch(
        session,
        [
            AggregatedDay(date="2024-10-31", platform="swiggy", data_type="ads", total_spend=5),
            AggregatedDay(date="2024-11-03", platform="swiggy", data_type="ads", total_spend=10),
            AggregatedDay(date="2024-11-01", platform="swiggy", data_type="ads", total_spend=20),
            AggregatedDay(date="2024-11-02", platform="zepto", data_type="ads", total_spend=30),
            AggregatedDay(date="2024-11-02", platform="swiggy", data_type="sales", total_sales=99),
        ],
    )


def test_ads_metrics_ascending_and_ads_only(session):
    _store(session)
    rows = summary_engine.get_ads_metrics(session, "2024-11-01", "2024-11-30", platform="swiggy")
    assert [r.date for r in rows] == ["2024-11-01", "2024-11-03"]


def test_monthly_summary_bounds(session):
    _store(session)
    rows = summary_engine.get_monthly_summary(session, "2024-11", "2024-11")
    assert {(r.month, r.platform) for r in rows} == {("2024-11", "swiggy"), ("2024-11", "zepto")}
    swiggy = next(r for r in rows if r.platform == "swiggy")
    assert swiggy.total_spend == 30
    assert swiggy.total_sales == 99


def test_summary_from_session_respects_range(session):
    _store(session)
    summary = summary_engine.get_metrics_summary(session, "2024-11-01")
    assert summary.total_spend == 60
    assert summary.total_product_sales == 99
