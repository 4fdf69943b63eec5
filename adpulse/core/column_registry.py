"""AdPulse — Canonical Column Registry.

Defines the canonical row fields and the known spreadsheet header variants
that map onto them. When a new platform's sheet shows up with unfamiliar
headers, register them here (or add a per-platform override in the
column_mappings table).
"""

from enum import Enum
from typing import Dict, List


class CanonicalColumn(str, Enum):
    """Target fields every sheet row is normalized into."""

    DATE = "date"
    SPEND = "spend"
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    SALES = "sales"
    ORDERS = "orders"
    CAMPAIGN = "campaign_name"
    CITY = "city"
    BRAND = "brand"


CANONICAL_COLUMNS = frozenset(c.value for c in CanonicalColumn)


# ─────────────────────────────────────────────
# DEFAULT MAPPINGS — lower-cased header → canonical field
# ─────────────────────────────────────────────

DEFAULT_MAPPINGS: Dict[str, str] = {
    # Date
    "date": "date",
    "metrics_date": "date",
    "metrics date": "date",
    "ordered_date": "date",
    "report_date": "date",
    "sales date": "date",  # Zepto Sales
    "month": "date",
    # Spend
    "spend": "spend",
    "spends": "spend",
    "total_budget_burnt": "spend",  # Swiggy Ads
    "budget_burnt": "spend",
    "total_budget": "spend",
    "daily_budget": "spend",  # Zepto Ads
    "cost": "spend",
    "amount_spent": "spend",
    # Impressions
    "impressions": "impressions",
    "total_impressions": "impressions",  # Swiggy Ads
    "views": "impressions",
    # Clicks
    "clicks": "clicks",
    "total_clicks": "clicks",  # Swiggy Ads
    "click": "clicks",
    # Sales / GMV. The 7- and 14-day direct GMV columns are left unmapped
    # so they never double-count against total_gmv.
    "gmv": "sales",
    "total_gmv": "sales",  # Swiggy Ads
    "revenue": "sales",  # Zepto Ads
    "sales": "sales",
    "total_sales": "sales",
    "order_value": "sales",
    # Orders / quantity
    "orders": "orders",
    "total_orders": "orders",
    "total_conversions": "orders",  # Swiggy Ads
    "conversions": "orders",
    "units_sold": "orders",  # Swiggy Sales
    "quantity": "orders",  # Zepto Sales
    # Campaign / product name
    "campaign_name": "campaign_name",
    "campaignname": "campaign_name",  # Zepto Ads
    "campaign": "campaign_name",
    "product_name": "campaign_name",
    "sku name": "campaign_name",  # Zepto Sales
    "sku_name": "campaign_name",
    "ad_name": "campaign_name",
    "menu_name": "campaign_name",
    "item_name": "campaign_name",
    "item": "campaign_name",
    "name": "campaign_name",
    # City / location
    "city": "city",
    "location": "city",
    "area_name": "city",  # Swiggy Sales
    "region": "city",
    # Brand
    "brand": "brand",
    "brand_name": "brand",
    "brandname": "brand",  # Zepto Ads
}


# ─────────────────────────────────────────────
# QUERY DETECTION — header variants per summed metric
# ─────────────────────────────────────────────
# Used by the server-side query path, which needs a single column letter
# per metric rather than a full mapping table. Daily_budget is deliberately
# absent: on Zepto it is the budget cap, not actual spend.

QUERY_COLUMN_VARIANTS: Dict[str, List[str]] = {
    "date": [
        "METRICS_DATE",
        "ORDERED_DATE",
        "Date",
        "Sales Date",
        "Order Date",
        "Report Date",
        "Day",
    ],
    "spend": ["TOTAL_BUDGET_BURNT", "Spend", "Spends", "Cost", "Budget Burnt"],
    "impressions": ["TOTAL_IMPRESSIONS", "Impressions", "Views"],
    "clicks": ["TOTAL_CLICKS", "Clicks"],
    "sales": ["TOTAL_GMV", "GMV", "Revenue", "Sales", "Total GMV", "Total Sales"],
    "orders": [
        "TOTAL_CONVERSIONS",
        "UNITS_SOLD",
        "Orders",
        "Quantity",
        "Conversions",
        "Units Sold",
    ],
}

# Metrics summed per data type on the query path
QUERY_METRICS_BY_TYPE: Dict[str, List[str]] = {
    "ads": ["spend", "impressions", "clicks", "sales", "orders"],
    "sales": ["sales", "orders"],
}


# ─────────────────────────────────────────────
# DATA TYPE DETECTION
# ─────────────────────────────────────────────

ADS_INDICATORS = [
    "impressions",
    "clicks",
    "ctr",
    "cpi",
    "roi",
    "roas",
    "budget",
    "spend",
    "spends",
    "ad_name",
    "campaign",
    "budget_burnt",
]

SALES_INDICATORS = [
    "order_id",
    "order",
    "quantity",
    "units_sold",
    "sku",
    "product_name",
    "mrp",
    "discount",
    "net_amount",
]


def is_canonical(name: str) -> bool:
    """True if ``name`` is one of the canonical row fields."""
    return name in CANONICAL_COLUMNS
