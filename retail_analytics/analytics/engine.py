"""
Analytics Engine

Facade over the five window queries. A snapshot is validated once when the
engine is created; every query afterwards reads the same frozen snapshot, so
queries can safely run side by side on worker threads.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, getcontext, localcontext
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, Union, get_args, get_origin

import polars as pl
import structlog
from pydantic import BaseModel

from retail_analytics.config import get_settings
from retail_analytics.config.settings import Settings
from retail_analytics.models import (
    CustomerRankRow,
    MonthlyDeviationRow,
    MonthlyGrowthRow,
    QuarterlyAverageRow,
    RetailSnapshot,
    TopProductRow,
)
from retail_analytics.quality.integrity import validate_snapshot
from . import queries

logger = structlog.get_logger(__name__)

ROW_TYPES: Dict[str, Type[BaseModel]] = {
    "top_product_per_region": TopProductRow,
    "yoy_monthly_growth": MonthlyGrowthRow,
    "monthly_deviation_from_annual_average": MonthlyDeviationRow,
    "customer_spending_rank": CustomerRankRow,
    "running_quarterly_average": QuarterlyAverageRow,
}

_POLARS_TYPES = {
    int: pl.Int64,
    str: pl.Utf8,
    Decimal: pl.Float64,
}


def _polars_type(annotation: Any) -> pl.DataType:
    if get_origin(annotation) is Union:
        annotation = next(a for a in get_args(annotation) if a is not type(None))
    return _POLARS_TYPES[annotation]


def to_frame(rows: Sequence[BaseModel], row_type: Type[BaseModel]) -> pl.DataFrame:
    """
    Render result rows as a polars DataFrame.

    Columns follow the row type's field order and exist even when there are
    no rows. Decimal fields become Float64 for display; nulls stay null.
    """
    schema = {name: _polars_type(f.annotation) for name, f in row_type.model_fields.items()}
    records = [
        [float(v) if isinstance(v, Decimal) else v for v in row.model_dump().values()]
        for row in rows
    ]
    return pl.DataFrame(records, schema=schema, orient="row")


class AnalyticsEngine:
    """
    Runs the retail window queries against one snapshot.

    Example:
        engine = AnalyticsEngine(snapshot)
        top = engine.top_product_per_region()
        reports = engine.run_all(parallel=True)
    """

    def __init__(self, snapshot: RetailSnapshot, settings: Optional[Settings] = None):
        self.snapshot = snapshot
        self.settings = settings or get_settings()

        if self.settings.analytics.validate_inputs:
            validate_snapshot(snapshot)

        logger.info(
            "Analytics engine ready",
            customers=len(snapshot.customers),
            products=len(snapshot.products),
            transactions=len(snapshot.transactions),
        )

    def top_product_per_region(self) -> List[TopProductRow]:
        return queries.top_product_per_region(self.snapshot, validate=False)

    def yoy_monthly_growth(self) -> List[MonthlyGrowthRow]:
        return queries.yoy_monthly_growth(
            self.snapshot,
            lookback=self.settings.analytics.yoy_lookback_periods,
            decimal_places=self.settings.analytics.growth_decimal_places,
            validate=False,
        )

    def monthly_deviation_from_annual_average(self) -> List[MonthlyDeviationRow]:
        return queries.monthly_deviation_from_annual_average(self.snapshot, validate=False)

    def customer_spending_rank(self) -> List[CustomerRankRow]:
        return queries.customer_spending_rank(
            self.snapshot,
            limit=self.settings.analytics.top_customers_limit,
            validate=False,
        )

    def running_quarterly_average(self) -> List[QuarterlyAverageRow]:
        return queries.running_quarterly_average(self.snapshot, validate=False)

    def run(self, name: str) -> List[BaseModel]:
        """Run a single query by name"""
        if name not in queries.QUERIES:
            raise ValueError(f"Unknown query '{name}'. Available: {sorted(queries.QUERIES)}")
        return getattr(self, name)()

    def run_all(
        self,
        names: Optional[Iterable[str]] = None,
        parallel: bool = False,
    ) -> Dict[str, List[BaseModel]]:
        """
        Run several queries, keyed by query name in the requested order.

        With ``parallel`` the queries run on a thread pool under a copy of
        the caller's decimal context; the first failure is re-raised once
        all submitted queries have finished.
        """
        names = list(names or queries.QUERIES)
        for name in names:
            if name not in queries.QUERIES:
                raise ValueError(f"Unknown query '{name}'. Available: {sorted(queries.QUERIES)}")

        logger.info("Running analytics queries", queries=names, parallel=parallel)

        if not parallel:
            return {name: self.run(name) for name in names}

        # decimal contexts are thread-local; workers use a copy of the caller's
        context = getcontext().copy()

        def run_in_context(name: str) -> List[BaseModel]:
            with localcontext(context):
                return self.run(name)

        workers = min(self.settings.analytics.max_workers, len(names)) or 1
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analytics") as pool:
            futures = {name: pool.submit(run_in_context, name) for name in names}
        return {name: future.result() for name, future in futures.items()}

    def frames(self, results: Dict[str, List[BaseModel]]) -> Dict[str, pl.DataFrame]:
        """Render ``run_all`` output as DataFrames"""
        return {name: to_frame(rows, ROW_TYPES[name]) for name, rows in results.items()}
