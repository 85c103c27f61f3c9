"""
Retail Window Queries

The five reporting queries, each a pure function over a RetailSnapshot:

- top_product_per_region                 ROW_NUMBER per region
- yoy_monthly_growth                     LAG(monthly_sales, 12)
- monthly_deviation_from_annual_average  AVG OVER (PARTITION BY year)
- customer_spending_rank                 RANK by total spend
- running_quarterly_average               cumulative AVG over quarters

Every query validates its input first (unless the caller already did) and
returns an ordered list of flat result rows. Empty tables give empty lists.
"""

import functools
import time
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, TypeVar

import structlog

from retail_analytics.config import get_settings
from retail_analytics.models import (
    CustomerRankRow,
    MonthlyDeviationRow,
    MonthlyGrowthRow,
    QuarterlyAverageRow,
    RetailSnapshot,
    TopProductRow,
)
from retail_analytics.quality.integrity import validate_snapshot
from .windows import (
    competition_rank,
    group_sum,
    lag,
    mean,
    partition_by,
    pct_change,
    row_number,
    running_mean,
)

logger = structlog.get_logger(__name__)

R = TypeVar("R")


def analytics_query(func: Callable[..., List[R]]) -> Callable[..., List[R]]:
    """Validate the snapshot, run the query and log its outcome"""
    @functools.wraps(func)
    def wrapper(snapshot: RetailSnapshot, *args, validate: bool = True, **kwargs) -> List[R]:
        started = time.perf_counter()
        if validate:
            validate_snapshot(snapshot)
        rows = func(snapshot, *args, **kwargs)
        logger.info(
            "Query complete",
            query=func.__name__,
            rows=len(rows),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return rows

    return wrapper


def month_key(d: date) -> Tuple[int, int]:
    return d.year, d.month


def quarter_key(d: date) -> Tuple[int, int]:
    return d.year, (d.month - 1) // 3 + 1


def _product_order(group: Tuple[str, Optional[str], Decimal]):
    # Highest total first, then product name; the null product sorts last
    _, product_name, total = group
    return -total, product_name is None, product_name or ""


@analytics_query
def top_product_per_region(snapshot: RetailSnapshot) -> List[TopProductRow]:
    """
    Best-selling product of every region that has sales.

    Ties on total are broken by product name (ascending), with sales that
    have no product ranked after any named product.
    """
    customers = snapshot.customers_by_id
    products = snapshot.products_by_id

    def region_product(txn) -> Tuple[str, Optional[str]]:
        product = products.get(txn.product_id) if txn.product_id is not None else None
        return customers[txn.customer_id].region, product.name if product else None

    totals = group_sum(snapshot.transactions, key=region_product, value=lambda t: t.amount)
    groups = [(region, name, total) for (region, name), total in totals.items()]

    rows = []
    for region, region_groups in sorted(partition_by(groups, key=lambda g: g[0]).items()):
        for number, (_, product_name, total) in row_number(region_groups, _product_order):
            if number == 1:
                rows.append(TopProductRow(
                    region=region,
                    product_name=product_name,
                    total_amount=total,
                ))
    return rows


@analytics_query
def yoy_monthly_growth(
    snapshot: RetailSnapshot,
    lookback: Optional[int] = None,
    decimal_places: Optional[int] = None,
) -> List[MonthlyGrowthRow]:
    """
    Monthly sales with growth against the bucket ``lookback`` positions back.

    The lookback is positional over months that have sales, not calendar
    months. Growth is None without a comparison bucket or when it is zero.
    """
    settings = get_settings().analytics
    lookback = settings.yoy_lookback_periods if lookback is None else lookback
    places = settings.growth_decimal_places if decimal_places is None else decimal_places

    monthly = sorted(group_sum(snapshot.transactions, key=lambda t: month_key(t.sale_date), value=lambda t: t.amount).items())
    sales = [total for _, total in monthly]

    return [
        MonthlyGrowthRow(
            month=f"{year:04d}-{month:02d}",
            total_sales=total,
            previous_year_sales=previous,
            yoy_growth_pct=pct_change(total, previous, places),
        )
        for ((year, month), total), previous in zip(monthly, lag(sales, lookback))
    ]


@analytics_query
def monthly_deviation_from_annual_average(snapshot: RetailSnapshot) -> List[MonthlyDeviationRow]:
    """
    Monthly sales compared with the mean month of the same year.

    Only months with sales count towards a year's average.
    """
    monthly = group_sum(snapshot.transactions, key=lambda t: month_key(t.sale_date), value=lambda t: t.amount)

    annual_average = {
        year: mean([total for _, total in months])
        for year, months in partition_by(monthly.items(), key=lambda m: m[0][0]).items()
    }

    return [
        MonthlyDeviationRow(
            year=year,
            month=month,
            monthly_sales=total,
            annual_average_sales=annual_average[year],
            difference_from_average=total - annual_average[year],
        )
        for (year, month), total in sorted(monthly.items())
    ]


@analytics_query
def customer_spending_rank(snapshot: RetailSnapshot, limit: Optional[int] = None) -> List[CustomerRankRow]:
    """Customers ranked by total spend, keeping ranks up to ``limit``"""
    limit = get_settings().analytics.top_customers_limit if limit is None else limit
    customers = snapshot.customers_by_id

    spend = group_sum(snapshot.transactions, key=lambda t: t.customer_id, value=lambda t: t.amount)
    ranked = competition_rank(spend.items(), value=lambda s: s[1], tie_order=lambda s: s[0])

    rows = []
    for rank, (customer_id, total) in ranked:
        if rank > limit:
            break
        customer = customers[customer_id]
        rows.append(CustomerRankRow(
            customer_id=customer_id,
            name=customer.name,
            region=customer.region,
            total_spent=total,
            spending_rank=rank,
        ))
    return rows


@analytics_query
def running_quarterly_average(snapshot: RetailSnapshot) -> List[QuarterlyAverageRow]:
    """Quarterly sales with the cumulative mean of all quarters so far"""
    quarterly = sorted(group_sum(snapshot.transactions, key=lambda t: quarter_key(t.sale_date), value=lambda t: t.amount).items())

    return [
        QuarterlyAverageRow(
            quarter=f"{year:04d}-Q{quarter}",
            quarterly_sales=total,
            moving_avg_sales=average,
        )
        for ((year, quarter), total), average in zip(quarterly, running_mean(t for _, t in quarterly))
    ]


QUERIES = {
    "top_product_per_region": top_product_per_region,
    "yoy_monthly_growth": yoy_monthly_growth,
    "monthly_deviation_from_annual_average": monthly_deviation_from_annual_average,
    "customer_spending_rank": customer_spending_rank,
    "running_quarterly_average": running_quarterly_average,
}
