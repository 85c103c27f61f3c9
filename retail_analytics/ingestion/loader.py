"""
Snapshot Loader

Turns the three retail tables into a typed, frozen RetailSnapshot.
Supports:
- In-memory polars DataFrames
- CSV and Parquet files in one directory
- Frame-level quality validation before records are built
- Load summary logging
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import polars as pl
import structlog
from pydantic import BaseModel

from retail_analytics.config import get_settings
from retail_analytics.exceptions import InvalidValueError
from retail_analytics.models import RetailSnapshot
from retail_analytics.quality.validators import (
    create_customers_validator,
    create_products_validator,
    create_transactions_validator,
)

logger = structlog.get_logger(__name__)

TABLES = ("customers", "products", "transactions")


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    PARQUET = "parquet"


class LoadResult(BaseModel):
    """Summary of a snapshot load"""
    source: str
    customers: int = 0
    products: int = 0
    transactions: int = 0
    validated: bool = False
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None


def _cast_column(df: pl.DataFrame, column: str, entity: str, expr: pl.Expr) -> pl.DataFrame:
    try:
        return df.with_columns(expr.alias(column))
    except pl.exceptions.PolarsError as e:
        raise InvalidValueError(
            f"Cannot convert {entity} column '{column}': {e}",
            entity=entity,
            field=column,
        ) from e


def _normalize_ids(df: pl.DataFrame, columns: List[str], entity: str) -> pl.DataFrame:
    """Cast id columns that arrived as text or all-null to Int64"""
    for column in columns:
        if column in df.columns and not df.schema[column].is_integer():
            df = _cast_column(df, column, entity, pl.col(column).cast(pl.Int64, strict=True))
    return df


def _normalize_amounts(df: pl.DataFrame, columns: List[str], entity: str) -> pl.DataFrame:
    """Cast money columns that carry no values (header-only or all-null) to Float64"""
    for column in columns:
        if column not in df.columns or df.schema[column] not in (pl.Utf8, pl.Null):
            continue
        if df.height == 0 or df[column].null_count() == df.height:
            df = _cast_column(df, column, entity, pl.col(column).cast(pl.Float64))
    return df


def _normalize_transactions(df: pl.DataFrame) -> pl.DataFrame:
    """Coerce ids, amount and sale_date to their column types"""
    df = _normalize_ids(df, ["transaction_id", "customer_id", "product_id"], "transaction")
    df = _normalize_amounts(df, ["amount"], "transaction")
    if "sale_date" in df.columns:
        dtype = df.schema["sale_date"]
        if dtype == pl.Utf8:
            df = _cast_column(df, "sale_date", "transaction", pl.col("sale_date").str.to_date("%Y-%m-%d"))
        elif dtype == pl.Datetime:
            df = df.with_columns(pl.col("sale_date").dt.date())
    return df


def _to_decimal(value: Any) -> Any:
    # str() keeps the shortest repr, so 0.1 becomes Decimal("0.1")
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _records(df: pl.DataFrame, decimal_columns: List[str]) -> List[Dict[str, Any]]:
    rows = df.to_dicts()
    for row in rows:
        for column in decimal_columns:
            if column in row:
                row[column] = _to_decimal(row[column])
    return rows


def load_snapshot(
    customers_df: pl.DataFrame,
    products_df: pl.DataFrame,
    transactions_df: pl.DataFrame,
    validate: bool = True,
    source: str = "memory",
) -> RetailSnapshot:
    """
    Build a RetailSnapshot from three DataFrames.

    Args:
        customers_df: customer_id, name, region
        products_df: product_id, name and optionally category, price
        transactions_df: transaction_id, customer_id, product_id, sale_date, amount
        validate: Run the frame-level quality suites first
        source: Label used in the load summary

    Returns:
        RetailSnapshot ready for the analytics engine

    Raises:
        DataValidationError: a table fails validation or cannot be typed
    """
    started_at = datetime.utcnow()

    customers_df = _normalize_ids(customers_df, ["customer_id"], "customer")
    products_df = _normalize_ids(products_df, ["product_id"], "product")
    products_df = _normalize_amounts(products_df, ["price"], "product")
    transactions_df = _normalize_transactions(transactions_df)

    if validate:
        create_customers_validator().validate(customers_df).raise_for_status()
        create_products_validator().validate(products_df).raise_for_status()
        create_transactions_validator(customers_df, products_df).validate(transactions_df).raise_for_status()

    snapshot = RetailSnapshot.from_records(
        customers=customers_df.to_dicts(),
        products=_records(products_df, ["price"]),
        transactions=_records(transactions_df, ["amount"]),
    )

    completed_at = datetime.utcnow()
    result = LoadResult(
        source=source,
        customers=len(snapshot.customers),
        products=len(snapshot.products),
        transactions=len(snapshot.transactions),
        validated=validate,
        load_duration_seconds=(completed_at - started_at).total_seconds(),
        started_at=started_at,
        completed_at=completed_at,
    )
    logger.info("Snapshot loaded", **result.model_dump(exclude={"started_at", "completed_at"}))

    return snapshot


def read_table(path: Union[str, Path], file_format: FileFormat) -> pl.DataFrame:
    """Read one table file with polars"""
    readers = {
        FileFormat.CSV: lambda p: pl.read_csv(p, try_parse_dates=True),
        FileFormat.PARQUET: pl.read_parquet,
    }
    return readers[file_format](path)


def load_snapshot_from_files(
    directory: Optional[Union[str, Path]] = None,
    file_format: Optional[Union[str, FileFormat]] = None,
    validate: bool = True,
) -> RetailSnapshot:
    """
    Load customers, products and transactions files from a directory.

    Files are named ``<table>.<format>``; directory and format default to
    the data settings.
    """
    settings = get_settings()
    directory = Path(directory or settings.data.input_path)
    file_format = FileFormat(file_format or settings.data.default_format)

    frames = {}
    for table in TABLES:
        path = directory / f"{table}.{file_format.value}"
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        frames[table] = read_table(path, file_format)
        logger.debug("Read table", table=table, file=str(path), rows=len(frames[table]))

    return load_snapshot(
        frames["customers"],
        frames["products"],
        frames["transactions"],
        validate=validate,
        source=str(directory),
    )
