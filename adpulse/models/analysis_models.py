"""AdPulse — Read-side Summary Schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MetricsSummary(_CamelModel):
    """Cross-platform totals for a date range.

    Spend, impressions and clicks come from ads sheets only. ``total_sales``
    is ads-attributed GMV plus product GMV from sales sheets.
    """

    total_spend: float = 0.0
    total_impressions: float = 0.0
    total_clicks: float = 0.0
    total_sales: float = 0.0
    total_ads_sales: float = 0.0
    total_product_sales: float = 0.0
    total_orders: float = 0.0
    avg_cpi: float = 0.0
    avg_ctr: float = 0.0
    avg_roas: float = 0.0


class PlatformMetrics(_CamelModel):
    """Totals for one platform across all data types."""

    platform: str
    total_spend: float = 0.0
    total_sales: float = 0.0
    total_impressions: float = 0.0
    roas: float = 0.0


class TrendPoint(_CamelModel):
    """Totals for one calendar date across platforms."""

    date: str
    spend: float = 0.0
    sales: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0


class MonthlySummary(_CamelModel):
    """Totals for one (month, platform)."""

    month: str  # YYYY-MM
    platform: str
    total_spend: float = 0.0
    total_impressions: float = 0.0
    total_clicks: float = 0.0
    total_sales: float = 0.0
    total_orders: float = 0.0
    avg_cpi: float = 0.0
    avg_ctr: float = 0.0
    avg_roas: float = 0.0
