"""
Retail Window Analytics

Windowed retail metrics (top products, YoY growth, annual deviation,
spending rank, running quarterly average) over in-memory retail tables.
"""
from .exceptions import (
    AnalyticsError,
    DataValidationError,
    InvalidValueError,
    ReferentialIntegrityError,
)
from .models import Customer, Product, RetailSnapshot, Transaction

__version__ = "1.0.0"

__all__ = [
    "AnalyticsError",
    "DataValidationError",
    "InvalidValueError",
    "ReferentialIntegrityError",
    "Customer",
    "Product",
    "RetailSnapshot",
    "Transaction",
]
