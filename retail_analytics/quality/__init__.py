"""
Data Quality Module
"""
from .integrity import validate_snapshot
from .validators import (
    DataValidator,
    ValidationResult,
    ValidationStatus,
    create_customers_validator,
    create_products_validator,
    create_transactions_validator,
)

__all__ = [
    "validate_snapshot",
    "DataValidator",
    "ValidationResult",
    "ValidationStatus",
    "create_customers_validator",
    "create_products_validator",
    "create_transactions_validator",
]
