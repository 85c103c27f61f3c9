"""
Data Validation Module

Frame-level quality validation of the customers, products and transactions
tables using rule-based checks. Implements validation patterns inspired by
Great Expectations.

Features:
- Required column checks
- Null and uniqueness checks
- Numeric type and range checks
- Referential integrity checks
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

import polars as pl
import structlog

from retail_analytics.exceptions import (
    DataValidationError,
    InvalidValueError,
    ReferentialIntegrityError,
)

logger = structlog.get_logger(__name__)

# Offending ids kept per failed check
SAMPLE_SIZE = 5


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks loading
    WARNING = "warning"  # Non-critical - logged but continues
    INFO = "info"  # Informational only


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    column: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0
    sample_ids: List[Any] = field(default_factory=list)
    error_type: Type[DataValidationError] = InvalidValueError


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    entity: Optional[str] = None
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def errors(self) -> List[ValidationCheck]:
        return [
            c for c in self.checks
            if not c.passed and c.severity == ValidationSeverity.ERROR
        ]

    def raise_for_status(self) -> None:
        """Raise the error of the first failed error-severity check"""
        if self.status != ValidationStatus.FAILED:
            return
        failed = self.errors or [c for c in self.checks if not c.passed]
        check = failed[0]
        raise check.error_type(
            f"{self.entity or 'table'}: {check.message}",
            entity=self.entity,
            entity_id=check.sample_ids[0] if check.sample_ids else None,
            field=check.column,
        )


class DataValidator:
    """
    Table validator with a chainable check suite.

    Example:
        validator = DataValidator(entity="transaction", id_column="transaction_id")
        validator.add_not_null_check("customer_id")
        validator.add_range_check("amount", min_value=0)
        result = validator.validate(df)
    """

    def __init__(
        self,
        entity: Optional[str] = None,
        id_column: Optional[str] = None,
        strict_mode: bool = False,
    ):
        self.entity = entity
        self.id_column = id_column
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def _sample_ids(self, df: pl.DataFrame, mask: pl.Expr) -> List[Any]:
        if not self.id_column or self.id_column not in df.columns:
            return []
        return df.filter(mask)[self.id_column].head(SAMPLE_SIZE).to_list()

    def _missing_column(self, name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
            column=column,
        )

    def add_required_columns_check(
        self,
        columns: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that all listed columns are present"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in columns if c not in df.columns]
            return ValidationCheck(
                name="required_columns",
                passed=not missing,
                severity=severity,
                message=f"Missing columns: {missing}" if missing else "All required columns present",
                column=missing[0] if missing else None,
                details={"missing": missing},
            )

        self._checks.append(check)
        return self

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"not_null_{column}", column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=f"not_null_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                column=column,
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
                sample_ids=self._sample_ids(df, pl.col(column).is_null()) if not passed else [],
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"unique_{column}", column, severity)

            total = len(df)
            unique_count = df[column].n_unique()
            duplicate_count = total - unique_count
            passed = duplicate_count == 0

            return ValidationCheck(
                name=f"unique_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                column=column,
                details={"unique_count": unique_count, "duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
                sample_ids=self._sample_ids(df, pl.col(column).is_duplicated()) if not passed else [],
            )

        self._checks.append(check)
        return self

    def add_numeric_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that a column holds numbers"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"numeric_{column}", column, severity)

            dtype = df[column].dtype
            passed = dtype.is_numeric() or dtype == pl.Null

            return ValidationCheck(
                name=f"numeric_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' is {dtype}, expected a numeric type" if not passed else f"Column '{column}' is numeric",
                column=column,
                details={"dtype": str(dtype)},
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"range_{column}", column, severity)

            if not df[column].dtype.is_numeric():
                return ValidationCheck(
                    name=f"range_{column}",
                    passed=False,
                    severity=severity,
                    message=f"Column '{column}' is not numeric",
                    column=column,
                )

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=f"range_{column}",
                    passed=True,
                    severity=severity,
                    message="No range specified",
                    column=column,
                )

            # Combine conditions with OR
            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            total = len(df)
            passed = out_of_range == 0

            return ValidationCheck(
                name=f"range_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                column=column,
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
                sample_ids=self._sample_ids(df, combined) if not passed else [],
            )

        self._checks.append(check)
        return self

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for non-negative (or strictly positive) values"""
        if allow_zero:
            return self.add_range_check(column, min_value=0, severity=severity)

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"positive_{column}", column, severity)
            mask = pl.col(column) <= 0
            failed = df.filter(mask).height
            return ValidationCheck(
                name=f"positive_{column}",
                passed=failed == 0,
                severity=severity,
                message=f"Column '{column}' has {failed} non-positive values" if failed else "All values positive",
                column=column,
                failed_rows=failed,
                total_rows=len(df),
                sample_ids=self._sample_ids(df, mask) if failed else [],
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        column: Optional[str] = None,
    ) -> "DataValidator":
        """Add custom validation check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            try:
                passed = check_func(df)
            except pl.exceptions.PolarsError as e:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Check failed with error: {str(e)}",
                    column=column,
                )
            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message="Check passed" if passed else message_on_fail,
                column=column,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        column: str,
        reference_df: pl.DataFrame,
        reference_column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add referential integrity check; null references are allowed"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(f"ref_integrity_{column}", column, severity)

            ref_values = reference_df[reference_column].unique().to_list() if reference_column in reference_df.columns else []

            mask = ~pl.col(column).is_in(ref_values) & pl.col(column).is_not_null()
            orphans = df.filter(mask).height
            total = len(df)
            passed = orphans == 0

            return ValidationCheck(
                name=f"ref_integrity_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {orphans} orphan records" if not passed else "Referential integrity maintained",
                column=column,
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=total,
                sample_ids=self._sample_ids(df, mask) if not passed else [],
                error_type=ReferentialIntegrityError,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.utcnow()
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows", entity=self.entity)

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    entity=self.entity,
                    message=result.message,
                    severity=result.severity.value,
                    sample_ids=result.sample_ids,
                )

        completed_at = datetime.utcnow()

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            entity=self.entity,
            checks=results,
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.info(
            f"Validation complete: {status.value}",
            entity=self.entity,
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result


CUSTOMER_COLUMNS = ["customer_id", "name", "region"]
PRODUCT_COLUMNS = ["product_id", "name"]
TRANSACTION_COLUMNS = ["transaction_id", "customer_id", "product_id", "sale_date", "amount"]


# Pre-built validators for the three tables
def create_customers_validator() -> DataValidator:
    """Create pre-configured validator for customers data"""
    return (
        DataValidator(entity="customer", id_column="customer_id")
        .add_required_columns_check(CUSTOMER_COLUMNS)
        .add_not_null_check("customer_id")
        .add_unique_check("customer_id")
        .add_not_null_check("name")
        .add_not_null_check("region")
    )


def create_products_validator() -> DataValidator:
    """Create pre-configured validator for products data"""
    return (
        DataValidator(entity="product", id_column="product_id")
        .add_required_columns_check(PRODUCT_COLUMNS)
        .add_not_null_check("product_id")
        .add_unique_check("product_id")
        .add_not_null_check("name")
    )


def _amounts_finite(df: pl.DataFrame) -> bool:
    if "amount" not in df.columns or not df.schema["amount"].is_float():
        return True
    return bool(df["amount"].is_finite().all())


def create_transactions_validator(
    customers_df: pl.DataFrame,
    products_df: pl.DataFrame,
) -> DataValidator:
    """Create pre-configured validator for transactions against their reference tables"""
    return (
        DataValidator(entity="transaction", id_column="transaction_id")
        .add_required_columns_check(TRANSACTION_COLUMNS)
        .add_not_null_check("transaction_id")
        .add_unique_check("transaction_id")
        .add_not_null_check("customer_id")
        .add_not_null_check("sale_date")
        .add_not_null_check("amount")
        .add_numeric_check("amount")
        .add_custom_check(
            "amount_finite",
            _amounts_finite,
            "amount must be a finite number",
            column="amount",
        )
        .add_positive_check("amount")
        .add_referential_integrity_check("customer_id", customers_df, "customer_id")
        .add_referential_integrity_check("product_id", products_df, "product_id")
    )
