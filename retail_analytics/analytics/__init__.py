"""
Retail Window Analytics
"""
from .engine import AnalyticsEngine, ROW_TYPES, to_frame
from .queries import (
    QUERIES,
    customer_spending_rank,
    monthly_deviation_from_annual_average,
    running_quarterly_average,
    top_product_per_region,
    yoy_monthly_growth,
)

__all__ = [
    "AnalyticsEngine",
    "ROW_TYPES",
    "to_frame",
    "QUERIES",
    "customer_spending_rank",
    "monthly_deviation_from_annual_average",
    "running_quarterly_average",
    "top_product_per_region",
    "yoy_monthly_growth",
]
