"""
Retail Data Model

Typed, immutable records for the three input relations, the snapshot that
bundles them, and the flat result rows produced by the analytics queries.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from functools import cached_property
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from retail_analytics.exceptions import InvalidValueError


FROZEN = ConfigDict(frozen=True, populate_by_name=True)


# =============================================================================
# INPUT RELATIONS
# =============================================================================

class Customer(BaseModel):
    """Customer reference data"""
    model_config = FROZEN

    customer_id: int = Field(..., description="Unique customer identifier")
    name: str = Field(..., description="Customer name")
    region: str = Field(..., description="Sales region")


class Product(BaseModel):
    """Product reference data"""
    model_config = FROZEN

    product_id: int = Field(..., description="Unique product identifier")
    name: str = Field(..., description="Product name")
    category: Optional[str] = Field(default=None, description="Product category")
    price: Optional[Decimal] = Field(default=None, description="List price")


class Transaction(BaseModel):
    """A single sale; product_id is None when the sale has no product"""
    model_config = FROZEN

    transaction_id: int = Field(..., description="Transaction identifier")
    customer_id: int = Field(..., description="Purchasing customer")
    product_id: Optional[int] = Field(default=None, description="Product sold, if any")
    sale_date: date = Field(..., description="Calendar date of sale")
    amount: Decimal = Field(..., description="Sale amount")


@dataclass(frozen=True)
class RetailSnapshot:
    """
    Read-only snapshot of the three relations.

    The analytics queries only ever read from a snapshot; lookups are built
    lazily and cached on first use.
    """
    customers: Tuple[Customer, ...] = field(default_factory=tuple)
    products: Tuple[Product, ...] = field(default_factory=tuple)
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)

    @classmethod
    def from_records(
        cls,
        customers: Iterable = (),
        products: Iterable = (),
        transactions: Iterable = (),
    ) -> "RetailSnapshot":
        """
        Build a snapshot from models or plain dicts.

        Raises:
            InvalidValueError: a dict cannot be coerced into its model
        """
        return cls(
            customers=tuple(_coerce(Customer, "customer", "customer_id", c) for c in customers),
            products=tuple(_coerce(Product, "product", "product_id", p) for p in products),
            transactions=tuple(
                _coerce(Transaction, "transaction", "transaction_id", t) for t in transactions
            ),
        )

    @cached_property
    def customers_by_id(self) -> Dict[int, Customer]:
        return {c.customer_id: c for c in self.customers}

    @cached_property
    def products_by_id(self) -> Dict[int, Product]:
        return {p.product_id: p for p in self.products}

    @property
    def is_empty(self) -> bool:
        return not (self.customers or self.products or self.transactions)


def _coerce(model: Type[BaseModel], entity: str, id_field: str, record: Any) -> BaseModel:
    """Validate a raw record into ``model``, reporting the first bad field"""
    if isinstance(record, model):
        return record
    try:
        return model.model_validate(record)
    except ValidationError as e:
        first = e.errors()[0]
        field_name = ".".join(str(part) for part in first["loc"]) or None
        entity_id = record.get(id_field) if isinstance(record, Mapping) else None
        raise InvalidValueError(
            f"Invalid {entity} {entity_id!r}: {field_name}: {first['msg']}",
            entity=entity,
            entity_id=entity_id,
            field=field_name,
        ) from e


# =============================================================================
# RESULT ROWS
# =============================================================================

class TopProductRow(BaseModel):
    """Best-selling product of a region"""
    model_config = FROZEN

    region: str
    product_name: Optional[str]
    total_amount: Decimal


class MonthlyGrowthRow(BaseModel):
    """Monthly sales against the bucket twelve positions earlier"""
    model_config = FROZEN

    month: str
    total_sales: Decimal
    previous_year_sales: Optional[Decimal]
    yoy_growth_pct: Optional[Decimal]


class MonthlyDeviationRow(BaseModel):
    """Monthly sales against the average month of the same year"""
    model_config = FROZEN

    year: int
    month: int
    monthly_sales: Decimal
    annual_average_sales: Decimal
    difference_from_average: Decimal


class CustomerRankRow(BaseModel):
    """Customer total spend with competition rank"""
    model_config = FROZEN

    customer_id: int
    name: str
    region: str
    total_spent: Decimal
    spending_rank: int


class QuarterlyAverageRow(BaseModel):
    """Quarterly sales with the cumulative mean up to that quarter"""
    model_config = FROZEN

    quarter: str
    quarterly_sales: Decimal
    moving_avg_sales: Decimal
