"""
Test Suite Configuration
"""
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Tuple

import polars as pl
import pytest

from retail_analytics.config import Settings
from retail_analytics.models import Customer, Product, RetailSnapshot, Transaction


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(APP_ENV="testing", DEBUG=True)


@pytest.fixture
def customers() -> list:
    return [
        Customer(customer_id=1, name="Alice", region="North"),
        Customer(customer_id=2, name="Bob", region="North"),
        Customer(customer_id=3, name="Carol", region="South"),
        Customer(customer_id=4, name="Dan", region="East"),
        Customer(customer_id=5, name="Eve", region="South"),
    ]


@pytest.fixture
def products() -> list:
    return [
        Product(product_id=10, name="Laptop", category="electronics", price=Decimal("1200.00")),
        Product(product_id=11, name="Phone", category="electronics", price=Decimal("800.00")),
        Product(product_id=12, name="Tablet"),
    ]


@pytest.fixture
def transactions() -> list:
    """Four months of 2024 sales; Eve's sale has no product"""
    return [
        Transaction(transaction_id=1, customer_id=1, product_id=10, sale_date=date(2024, 1, 10), amount=Decimal("25000")),
        Transaction(transaction_id=2, customer_id=2, product_id=11, sale_date=date(2024, 2, 5), amount=Decimal("55000")),
        Transaction(transaction_id=3, customer_id=3, product_id=10, sale_date=date(2024, 3, 15), amount=Decimal("65000")),
        Transaction(transaction_id=4, customer_id=5, product_id=None, sale_date=date(2024, 4, 20), amount=Decimal("75000")),
    ]


@pytest.fixture
def sample_snapshot(customers, products, transactions) -> RetailSnapshot:
    return RetailSnapshot.from_records(customers, products, transactions)


@pytest.fixture
def empty_snapshot() -> RetailSnapshot:
    return RetailSnapshot()


@pytest.fixture
def monthly_snapshot() -> Callable[[Dict[Tuple[int, int], str]], RetailSnapshot]:
    """Factory: one transaction per (year, month) with the given amount"""
    def build(monthly: Dict[Tuple[int, int], str]) -> RetailSnapshot:
        transactions = [
            Transaction(
                transaction_id=i,
                customer_id=1,
                product_id=None,
                sale_date=date(year, month, 1),
                amount=Decimal(amount),
            )
            for i, ((year, month), amount) in enumerate(sorted(monthly.items()), start=1)
        ]
        return RetailSnapshot.from_records(
            customers=[Customer(customer_id=1, name="Alice", region="North")],
            transactions=transactions,
        )

    return build


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Create sample customers DataFrame for testing"""
    return pl.DataFrame({
        "customer_id": [1, 2, 3],
        "name": ["Alice", "Bob", "Carol"],
        "region": ["North", "South", "North"],
    })


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Create sample products DataFrame for testing"""
    return pl.DataFrame({
        "product_id": [10, 11],
        "name": ["Laptop", "Phone"],
        "category": ["electronics", "electronics"],
        "price": [1200.00, 800.00],
    })


@pytest.fixture
def sample_transactions_df() -> pl.DataFrame:
    """Create sample transactions DataFrame for testing"""
    return pl.DataFrame({
        "transaction_id": [100, 101, 102, 103],
        "customer_id": [1, 2, 3, 1],
        "product_id": [10, 11, None, 11],
        "sale_date": ["2024-01-15", "2024-02-20", "2024-02-21", "2024-05-01"],
        "amount": [1200.50, 800.25, 99.99, 1600.00],
    }, schema={
        "transaction_id": pl.Int64,
        "customer_id": pl.Int64,
        "product_id": pl.Int64,
        "sale_date": pl.Utf8,
        "amount": pl.Float64,
    })
