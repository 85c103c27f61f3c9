"""
Synthetic Data Generator

Generates realistic retail data for demos and tests:
- Customers spread over sales regions
- Products across categories with list prices
- Transactions over several years, a few without a product
"""

from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import polars as pl
import structlog
from faker import Faker

from retail_analytics.config import get_settings

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

REGIONS = ["North", "South", "East", "West", "Central"]

CATEGORIES = {
    "electronics": ["Laptop", "Headphones", "Monitor", "Keyboard", "Tablet"],
    "home": ["Blender", "Lamp", "Kettle", "Vacuum", "Toaster"],
    "sports": ["Bicycle", "Yoga Mat", "Dumbbells", "Tent", "Running Shoes"],
    "books": ["Novel", "Cookbook", "Atlas", "Biography", "Textbook"],
}

# Share of transactions recorded without a product
UNMATCHED_PRODUCT_RATE = 0.03


# =============================================================================
# GENERATORS
# =============================================================================

class SampleDataGenerator:
    """
    Deterministic generator for the customers, products and transactions tables.

    Example:
        generator = SampleDataGenerator(seed=7)
        tables = generator.generate_all(n_transactions=5000)
        generator.write(tables, "data/raw")
    """

    def __init__(
        self,
        seed: int = 42,
        start_date: date = date(2022, 1, 1),
        end_date: date = date(2024, 12, 31),
    ):
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        self.seed = seed
        self.start_date = start_date
        self.end_date = end_date
        self.rng = np.random.default_rng(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def generate_customers(self, n: int = 200) -> pl.DataFrame:
        """Generate n customers"""
        return pl.DataFrame({
            "customer_id": list(range(1, n + 1)),
            "name": [self.fake.name() for _ in range(n)],
            "region": self.rng.choice(REGIONS, size=n).tolist(),
        }, schema={"customer_id": pl.Int64, "name": pl.Utf8, "region": pl.Utf8})

    def generate_products(self) -> pl.DataFrame:
        """Generate one product per catalog entry"""
        rows = [
            (category, name)
            for category, names in CATEGORIES.items()
            for name in names
        ]
        n = len(rows)
        return pl.DataFrame({
            "product_id": list(range(1, n + 1)),
            "name": [name for _, name in rows],
            "category": [category for category, _ in rows],
            "price": np.round(self.rng.uniform(5, 1500, n), 2).tolist(),
        }, schema={"product_id": pl.Int64, "name": pl.Utf8, "category": pl.Utf8, "price": pl.Float64})

    def generate_transactions(
        self,
        customers_df: pl.DataFrame,
        products_df: pl.DataFrame,
        n: int = 2000,
    ) -> pl.DataFrame:
        """Generate n transactions against existing customers and products"""
        span_days = (self.end_date - self.start_date).days
        prices = dict(zip(products_df["product_id"].to_list(), products_df["price"].to_list()))

        customer_ids = self.rng.choice(customers_df["customer_id"].to_numpy(), size=n) if len(customers_df) else []
        product_ids = self.rng.choice(products_df["product_id"].to_numpy(), size=n) if len(products_df) else [None] * n
        unmatched = self.rng.random(n) < UNMATCHED_PRODUCT_RATE
        quantities = self.rng.integers(1, 5, size=n)
        offsets = self.rng.integers(0, span_days + 1, size=n)

        rows = []
        for i in range(min(n, len(customer_ids))):
            product_id = None if unmatched[i] or product_ids[i] is None else int(product_ids[i])
            if product_id is None:
                amount = round(float(self.rng.uniform(1, 200)), 2)
            else:
                amount = round(prices[product_id] * int(quantities[i]), 2)
            rows.append({
                "transaction_id": i + 1,
                "customer_id": int(customer_ids[i]),
                "product_id": product_id,
                "sale_date": self.start_date + timedelta(days=int(offsets[i])),
                "amount": amount,
            })

        return pl.DataFrame(rows, schema={
            "transaction_id": pl.Int64,
            "customer_id": pl.Int64,
            "product_id": pl.Int64,
            "sale_date": pl.Date,
            "amount": pl.Float64,
        })

    def generate_all(self, n_customers: int = 200, n_transactions: int = 2000) -> Dict[str, pl.DataFrame]:
        """Generate the complete dataset"""
        customers_df = self.generate_customers(n_customers)
        products_df = self.generate_products()
        transactions_df = self.generate_transactions(customers_df, products_df, n_transactions)

        logger.info(
            "Sample data generated",
            seed=self.seed,
            customers=len(customers_df),
            products=len(products_df),
            transactions=len(transactions_df),
        )
        return {
            "customers": customers_df,
            "products": products_df,
            "transactions": transactions_df,
        }

    def write(
        self,
        tables: Dict[str, pl.DataFrame],
        output_dir: Optional[Union[str, Path]] = None,
        file_format: str = "csv",
    ) -> Path:
        """Save generated tables as <table>.csv or <table>.parquet"""
        output_dir = Path(output_dir or get_settings().data.input_path)
        output_dir.mkdir(parents=True, exist_ok=True)

        for name, df in tables.items():
            path = output_dir / f"{name}.{file_format}"
            if file_format == "parquet":
                df.write_parquet(path)
            else:
                df.write_csv(path)
            logger.info("Saved table", table=name, rows=len(df), file=str(path))

        return output_dir
