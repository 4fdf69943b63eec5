"""
Tests for column mapping, row normalization and header heuristics.
"""

from types import SimpleNamespace

import pytest

from adpulse.core.column_registry import DEFAULT_MAPPINGS
from adpulse.models.source_models import ColumnMapping
from adpulse.normalizer.column_mapper import (
    build_mapper,
    detect_data_type,
    normalize_column_name,
    normalize_row,
    resolve_mapping,
    suggest_mappings,
)
from adpulse.storage.repository import upsert_column_mapping


def _override(source, target, data_type="ads", is_active=True):
    return SimpleNamespace(
        source_column=source, target_column=target, data_type=data_type, is_active=is_active
    )


def test_defaults_only():
    mapper = resolve_mapping()
    assert mapper["total_budget_burnt"] == "spend"
    assert len(mapper) == len(DEFAULT_MAPPINGS)


def test_overrides_win_and_are_case_insensitive():
    mapper = resolve_mapping([_override("Daily_Budget", "campaign_name")], "ads")
    assert mapper["daily_budget"] == "campaign_name"


def test_overrides_for_other_data_type_ignored():
    mapper = resolve_mapping([_override("cost", "sales", data_type="sales")], "ads")
    assert mapper["cost"] == "spend"


def test_inactive_overrides_ignored():
    mapper = resolve_mapping([_override("cost", "sales", is_active=False)], "ads")
    assert mapper["cost"] == "spend"


def test_later_override_wins():
    mapper = resolve_mapping(
        [_override("spend_x", "spend"), _override("SPEND_X", "sales")], "ads"
    )
    assert mapper["spend_x"] == "sales"


def test_snapshot_is_immutable():
    mapper = resolve_mapping()
    with pytest.raises(TypeError):
        mapper["gmv"] = "spend"  # type: ignore[index]
    assert DEFAULT_MAPPINGS["gmv"] == "sales"


def test_build_mapper_reads_stored_overrides(session):
    upsert_column_mapping(
        session,
        ColumnMapping(platform="zepto", data_type="ads", source_column="Burn", target_column="spend"),
    )
    upsert_column_mapping(
        session,
        ColumnMapping(platform="swiggy", data_type="ads", source_column="Burn", target_column="sales"),
    )
    mapper = build_mapper(session, "zepto", "ads")
    assert mapper["burn"] == "spend"


def test_normalize_column_name_slug_fallback():
    mapper = resolve_mapping()
    assert normalize_column_name(" Sales Date ", mapper) == "date"
    assert normalize_column_name("Ad Group Name", mapper) == "ad_group_name"


def test_normalize_row_swiggy_ads():
    mapper = resolve_mapping()
    row = {
        "METRICS_DATE": "24/11/2024",
        "TOTAL_BUDGET_BURNT": "₹1,200.50",
        "TOTAL_IMPRESSIONS": "10,000",
        "TOTAL_CLICKS": "250",
        "TOTAL_GMV": "5000",
        "TOTAL_CONVERSIONS": "12",
        "PRODUCT_NAME": "Paneer Wrap",
        "CITY": "Bangalore",
        "BRAND_NAME": "Wrapito",
        "AD_GROUP": "AG-1",
    }
    normalized = normalize_row(row, mapper)
    assert normalized.date == "2024-11-24"
    assert normalized.spend == 1200.50
    assert normalized.impressions == 10000
    assert normalized.clicks == 250
    assert normalized.sales == 5000
    assert normalized.orders == 12
    assert normalized.campaign_name == "Paneer Wrap"
    assert normalized.city == "Bangalore"
    assert normalized.brand == "Wrapito"
    assert normalized.extra == {"ad_group": "AG-1"}


def test_sales_first_non_zero_wins():
    mapper = resolve_mapping(
        [_override("total_direct_gmv_7_days", "sales")], "ads"
    )
    row = {"date": "2024-01-01", "total_gmv": "900", "total_direct_gmv_7_days": "400"}
    assert normalize_row(row, mapper).sales == 900


def test_sales_later_column_used_when_first_is_zero():
    mapper = resolve_mapping()
    row = {"gmv": "0", "revenue": "300"}
    assert normalize_row(row, mapper).sales == 300


def test_repeated_numeric_targets_are_summed():
    mapper = resolve_mapping()
    row = {"spend": "10", "cost": "5", "clicks": "1", "click": "2"}
    normalized = normalize_row(row, mapper)
    assert normalized.spend == 15
    assert normalized.clicks == 3


def test_malformed_values_default_to_zero():
    normalized = normalize_row({"Date": "garbage", "Spend": "n/a", "Orders": None}, resolve_mapping())
    assert normalized.date == ""
    assert normalized.spend == 0
    assert normalized.orders == 0


def test_detect_data_type():
    assert detect_data_type(["METRICS_DATE", "TOTAL_IMPRESSIONS", "TOTAL_CLICKS", "TOTAL_BUDGET_BURNT"]) == "ads"
    assert detect_data_type(["ORDERED_DATE", "ORDER_ID", "UNITS_SOLD", "SKU", "MRP"]) == "sales"
    assert detect_data_type([]) == "ads"


def test_suggest_mappings():
    suggestions = suggest_mappings(["GMV", "Total Spend Today", "zzz"])
    by_source = {s["source"]: s for s in suggestions}
    assert by_source["GMV"] == {"source": "GMV", "target": "sales", "confidence": "high"}
    assert by_source["Total Spend Today"]["confidence"] == "medium"
    assert "zzz" not in by_source


def test_negative_sales_does_not_claim_the_slot():
    mapper = resolve_mapping()
    row = {"total_gmv": "-100", "gmv": "500"}
    assert normalize_row(row, mapper).sales == 500
