"""AdPulse — Daily Metric Model.

One row per (date, platform, data_type). The unique constraint backs the
upsert: re-syncing a day replaces its totals instead of adding to them.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import SQLModel, Field, UniqueConstraint


class DailyMetric(SQLModel, table=True):
    """Stored daily totals plus ratios derived at write time."""

    __tablename__ = "daily_metrics"
    __table_args__ = (
        UniqueConstraint(
            "date",
            "platform",
            "data_type",
            name="uq_daily_metric",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    date: str = Field(index=True, description="YYYY-MM-DD")
    platform: str = Field(index=True)
    data_type: str = Field(index=True, description="ads | sales")
    total_spend: float = Field(default=0.0)
    total_impressions: float = Field(default=0.0)
    total_clicks: float = Field(default=0.0)
    total_sales: float = Field(default=0.0)
    total_orders: float = Field(default=0.0)
    cpi: float = Field(default=0.0, description="spend / impressions")
    ctr: float = Field(default=0.0, description="clicks / impressions * 100")
    cpc: float = Field(default=0.0, description="spend / clicks")
    roas: float = Field(default=0.0, description="sales / spend")
    synced_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
