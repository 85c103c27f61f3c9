"""
Unit Tests - Data Quality
"""
from datetime import date
from decimal import Decimal

import polars as pl
import pytest

from retail_analytics.exceptions import InvalidValueError, ReferentialIntegrityError
from retail_analytics.models import Customer, Product, RetailSnapshot, Transaction
from retail_analytics.quality import validate_snapshot
from retail_analytics.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    create_customers_validator,
    create_transactions_validator,
)


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_passes(self):
        """Test not null check with valid data"""
        df = pl.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})

        validator = DataValidator()
        validator.add_not_null_check("id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fails(self):
        """Test not null check with null values"""
        df = pl.DataFrame({"id": [1, None, 3], "name": ["a", "b", "c"]})

        validator = DataValidator()
        validator.add_not_null_check("id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1

    def test_unique_check_reports_duplicate_ids(self):
        """Test unique check with duplicates"""
        df = pl.DataFrame({"id": [1, 2, 1]})

        validator = DataValidator(entity="customer", id_column="id")
        validator.add_unique_check("id")

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].sample_ids == [1, 1]

    def test_range_check(self):
        """Test range check"""
        df = pl.DataFrame({"price": [10.0, 50.0, -5.0, 200.0]})

        validator = DataValidator()
        validator.add_range_check("price", min_value=0, max_value=100)

        result = validator.validate(df)

        assert result.status == ValidationStatus.FAILED
        # Two values outside range: -5 and 200
        check = result.checks[0]
        assert check.failed_rows == 2

    def test_numeric_check_rejects_text(self):
        df = pl.DataFrame({"amount": ["10", "abc"]})

        result = DataValidator().add_numeric_check("amount").validate(df)

        assert result.status == ValidationStatus.FAILED

    def test_warning_gives_partial(self):
        df = pl.DataFrame({"id": [1, None]})

        validator = DataValidator()
        validator.add_not_null_check("id", severity=ValidationSeverity.WARNING)

        assert validator.validate(df).status == ValidationStatus.PARTIAL
        assert DataValidator(strict_mode=True).add_not_null_check(
            "id", severity=ValidationSeverity.WARNING
        ).validate(df).status == ValidationStatus.FAILED

    def test_custom_check(self):
        """Test custom validation check"""
        df = pl.DataFrame({"total": [100, 200, 300]})

        validator = DataValidator()
        validator.add_custom_check(
            name="total_sum",
            check_func=lambda df: df["total"].sum() < 1000,
            message_on_fail="Sum exceeds 1000",
        )

        result = validator.validate(df)

        # Sum is 600, which is < 1000
        assert result.status == ValidationStatus.PASSED

    def test_failed_custom_check_names_column(self):
        df = pl.DataFrame({"id": [1, 2], "total": [100, 2000]})

        result = DataValidator(entity="order", id_column="id").add_custom_check(
            name="total_cap",
            check_func=lambda df: df["total"].max() < 1000,
            message_on_fail="total exceeds 1000",
            column="total",
        ).validate(df)

        assert result.status == ValidationStatus.FAILED
        with pytest.raises(InvalidValueError) as exc:
            result.raise_for_status()
        assert exc.value.field == "total"
        assert "total exceeds 1000" in str(exc.value)

    def test_missing_column(self):
        result = DataValidator().add_required_columns_check(["id", "region"]).validate(pl.DataFrame({"id": [1]}))

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].details == {"missing": ["region"]}

    def test_customers_validator(self, sample_customers_df):
        """Test pre-built customers validator"""
        result = create_customers_validator().validate(sample_customers_df)

        assert result.total_checks > 0
        assert result.status == ValidationStatus.PASSED
        assert result.success_rate == 100.0


class TestTransactionsValidator:
    """Tests for the transactions suite and raise_for_status"""

    def test_valid_transactions(self, sample_customers_df, sample_products_df, sample_transactions_df):
        result = create_transactions_validator(sample_customers_df, sample_products_df).validate(sample_transactions_df)

        assert result.status == ValidationStatus.PASSED
        result.raise_for_status()

    def test_orphan_customer_raises_referential_error(self, sample_customers_df, sample_products_df, sample_transactions_df):
        df = sample_transactions_df.with_columns(
            pl.when(pl.col("transaction_id") == 102).then(77).otherwise(pl.col("customer_id")).alias("customer_id")
        )

        result = create_transactions_validator(sample_customers_df, sample_products_df).validate(df)

        with pytest.raises(ReferentialIntegrityError) as exc:
            result.raise_for_status()
        assert exc.value.entity == "transaction"
        assert exc.value.entity_id == 102
        assert exc.value.field == "customer_id"

    def test_null_product_is_allowed(self, sample_customers_df, sample_products_df, sample_transactions_df):
        result = create_transactions_validator(sample_customers_df, sample_products_df).validate(sample_transactions_df)

        ref_check = next(c for c in result.checks if c.name == "ref_integrity_product_id")
        assert ref_check.passed

    def test_nan_amount_raises_invalid_value(self, sample_customers_df, sample_products_df, sample_transactions_df):
        df = sample_transactions_df.with_columns(
            pl.when(pl.col("transaction_id") == 102).then(float("nan")).otherwise(pl.col("amount")).alias("amount")
        )

        result = create_transactions_validator(sample_customers_df, sample_products_df).validate(df)

        finite = next(c for c in result.checks if c.name == "amount_finite")
        assert not finite.passed
        with pytest.raises(InvalidValueError) as exc:
            result.raise_for_status()
        assert exc.value.field == "amount"

    def test_negative_amount_raises_invalid_value(self, sample_customers_df, sample_products_df, sample_transactions_df):
        df = sample_transactions_df.with_columns(
            pl.when(pl.col("transaction_id") == 101).then(-1.0).otherwise(pl.col("amount")).alias("amount")
        )

        result = create_transactions_validator(sample_customers_df, sample_products_df).validate(df)

        with pytest.raises(InvalidValueError) as exc:
            result.raise_for_status()
        assert exc.value.entity_id == 101
        assert exc.value.field == "amount"


class TestValidateSnapshot:
    """Record-level snapshot validation"""

    def test_valid_snapshot(self, sample_snapshot):
        validate_snapshot(sample_snapshot)

    def test_empty_snapshot(self, empty_snapshot):
        validate_snapshot(empty_snapshot)

    def test_duplicate_transaction_id(self, customers):
        txn = Transaction(transaction_id=1, customer_id=1, sale_date=date(2024, 1, 1), amount=Decimal("1"))
        snapshot = RetailSnapshot.from_records(customers, [], [txn, txn])

        with pytest.raises(InvalidValueError) as exc:
            validate_snapshot(snapshot)
        assert exc.value.field == "transaction_id"

    def test_duplicate_product_id(self):
        snapshot = RetailSnapshot.from_records(products=[
            Product(product_id=1, name="A"),
            Product(product_id=1, name="B"),
        ])

        with pytest.raises(InvalidValueError) as exc:
            validate_snapshot(snapshot)
        assert exc.value.entity == "product"

    def test_error_context(self):
        snapshot = RetailSnapshot.from_records(
            customers=[Customer(customer_id=1, name="A", region="North")],
            transactions=[Transaction(transaction_id=9, customer_id=2, sale_date=date(2024, 1, 1), amount=Decimal("1"))],
        )

        with pytest.raises(ReferentialIntegrityError) as exc:
            validate_snapshot(snapshot)
        assert exc.value.to_dict() == {
            "error": "ReferentialIntegrityError",
            "message": "Transaction 9 references unknown customer 2",
            "entity": "transaction",
            "entity_id": 9,
            "field": "customer_id",
        }
