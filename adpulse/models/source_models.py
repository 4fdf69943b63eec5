"""AdPulse — Data Source & Column Mapping Models.

A data source is one spreadsheet tab holding one platform's ads or sales
feed. Column mappings are per-platform overrides layered over the default
column table at sync time.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, UniqueConstraint


class DataType(str, Enum):
    """Which kind of sheet a source holds."""

    ADS = "ads"
    SALES = "sales"


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataSource(SQLModel, table=True):
    """One spreadsheet tab to sync."""

    __tablename__ = "data_sources"

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(description="Display name")
    sheet_id: str = Field(description="Spreadsheet identifier")
    sheet_url: str = Field(default="", description="Original sheet URL")
    platform: str = Field(index=True, description="swiggy | zepto | blinkit | instamart | ...")
    data_type: str = Field(index=True, description="ads | sales")
    tab_name: Optional[str] = Field(default=None)
    tab_gid: Optional[str] = Field(default=None, description="Grid id of the tab")
    is_active: bool = Field(default=True, index=True)
    last_synced_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ColumnMapping(SQLModel, table=True):
    """Per-platform override: source column name → canonical field.

    Unique on (platform, data_type, source_column) so saving a mapping
    for a column that already has one replaces it.
    """

    __tablename__ = "column_mappings"
    __table_args__ = (
        UniqueConstraint(
            "platform",
            "data_type",
            "source_column",
            name="uq_column_mapping",
        ),
    )

    id: str = Field(default_factory=_new_id, primary_key=True)
    platform: str = Field(index=True)
    data_type: str = Field(index=True, description="ads | sales")
    source_column: str = Field(description="Column header as it appears in the sheet")
    target_column: str = Field(description="Canonical field name")
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utcnow)
