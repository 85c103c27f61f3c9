"""
Snapshot Integrity Checks

Record-level validation run before any analytics query. The first problem
found aborts the computation; nothing is dropped or repaired.
"""

from decimal import Decimal
from typing import Iterable

import structlog

from retail_analytics.exceptions import (
    DataValidationError,
    InvalidValueError,
    ReferentialIntegrityError,
)
from retail_analytics.models import RetailSnapshot

logger = structlog.get_logger(__name__)


def _fail(error: DataValidationError) -> None:
    logger.error(
        "Snapshot validation failed",
        error=type(error).__name__,
        entity=error.entity,
        entity_id=error.entity_id,
        field=error.field,
    )
    raise error


def _check_unique(ids: Iterable, entity: str, field: str) -> None:
    seen = set()
    for entity_id in ids:
        if entity_id in seen:
            _fail(InvalidValueError(
                f"Duplicate {field} {entity_id!r}",
                entity=entity,
                entity_id=entity_id,
                field=field,
            ))
        seen.add(entity_id)


def validate_snapshot(snapshot: RetailSnapshot) -> None:
    """
    Validate a snapshot's keys, references and amounts.

    Raises:
        InvalidValueError: duplicate identifier or a negative/non-finite amount
        ReferentialIntegrityError: a customer or product reference does not resolve
    """
    _check_unique((c.customer_id for c in snapshot.customers), "customer", "customer_id")
    _check_unique((p.product_id for p in snapshot.products), "product", "product_id")
    _check_unique(
        (t.transaction_id for t in snapshot.transactions), "transaction", "transaction_id"
    )

    customers = snapshot.customers_by_id
    products = snapshot.products_by_id

    for txn in snapshot.transactions:
        if txn.customer_id not in customers:
            _fail(ReferentialIntegrityError(
                f"Transaction {txn.transaction_id} references unknown customer {txn.customer_id}",
                entity="transaction",
                entity_id=txn.transaction_id,
                field="customer_id",
            ))
        if txn.product_id is not None and txn.product_id not in products:
            _fail(ReferentialIntegrityError(
                f"Transaction {txn.transaction_id} references unknown product {txn.product_id}",
                entity="transaction",
                entity_id=txn.transaction_id,
                field="product_id",
            ))
        if not isinstance(txn.amount, Decimal) or not txn.amount.is_finite():
            _fail(InvalidValueError(
                f"Transaction {txn.transaction_id} has non-numeric amount {txn.amount!r}",
                entity="transaction",
                entity_id=txn.transaction_id,
                field="amount",
            ))
        if txn.amount < 0:
            _fail(InvalidValueError(
                f"Transaction {txn.transaction_id} has negative amount {txn.amount}",
                entity="transaction",
                entity_id=txn.transaction_id,
                field="amount",
            ))

    logger.debug(
        "Snapshot validated",
        customers=len(snapshot.customers),
        products=len(snapshot.products),
        transactions=len(snapshot.transactions),
    )
