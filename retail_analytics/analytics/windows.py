"""
Window Primitives

Explicit replacements for SQL window functions. Every query follows the
same shape: bucket rows (hash-group), order the buckets with a strict total
order, then make a single linear scan carrying running state.

- partition_by / group_sum   -> GROUP BY, PARTITION BY
- row_number                 -> ROW_NUMBER() OVER (ORDER BY ...)
- competition_rank           -> RANK() OVER (ORDER BY ...)
- lag                        -> LAG(x, n) OVER (ORDER BY ...)
- running_mean               -> AVG(x) OVER (ORDER BY ... ROWS UNBOUNDED PRECEDING)
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

ZERO = Decimal(0)


def partition_by(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, List[T]]:
    """Split items into partitions keyed by ``key``, preserving input order"""
    partitions: Dict[K, List[T]] = defaultdict(list)
    for item in items:
        partitions[key(item)].append(item)
    return dict(partitions)


def group_sum(
    items: Iterable[T],
    key: Callable[[T], K],
    value: Callable[[T], Decimal],
) -> Dict[K, Decimal]:
    """Sum ``value`` per ``key`` using exact decimal arithmetic"""
    totals: Dict[K, Decimal] = defaultdict(lambda: ZERO)
    for item in items:
        totals[key(item)] += value(item)
    return dict(totals)


def row_number(items: Iterable[T], order_key: Callable[[T], Any]) -> List[Tuple[int, T]]:
    """
    Number items 1..n in ascending ``order_key`` order.

    Unlike ``competition_rank`` every row gets a distinct number, so
    ``order_key`` must be a total order; equal keys would make the numbering
    depend on input order.
    """
    return [(i, item) for i, item in enumerate(sorted(items, key=order_key), start=1)]


def competition_rank(
    items: Iterable[T],
    value: Callable[[T], Any],
    descending: bool = True,
    tie_order: Optional[Callable[[T], Any]] = None,
) -> List[Tuple[int, T]]:
    """
    Standard competition ranking ("1224").

    Equal values share a rank and the next distinct value skips ahead by
    the number of tied rows. ``tie_order`` only fixes the output order of
    tied rows; it never changes their rank.
    """
    ordered = list(items)
    if tie_order is not None:
        ordered.sort(key=tie_order)
    # stable sort keeps tie_order within equal values
    ordered.sort(key=value, reverse=descending)

    ranked: List[Tuple[int, T]] = []
    previous = None
    rank = 0
    for position, item in enumerate(ordered, start=1):
        current = value(item)
        if position == 1 or current != previous:
            rank = position
        ranked.append((rank, item))
        previous = current
    return ranked


def lag(values: Sequence[T], offset: int = 1) -> List[Optional[T]]:
    """Value ``offset`` positions earlier in the sequence, or None"""
    if offset < 1:
        raise ValueError(f"Lag offset must be positive, got {offset}")
    return [values[i - offset] if i >= offset else None for i in range(len(values))]


def running_mean(values: Iterable[Decimal]) -> List[Decimal]:
    """Prefix averages: element k is the mean of values[0..k]"""
    means = []
    running_sum = ZERO
    for count, value in enumerate(values, start=1):
        running_sum += value
        means.append(running_sum / count)
    return means


def mean(values: Sequence[Decimal]) -> Optional[Decimal]:
    """Arithmetic mean, None for an empty sequence"""
    if not values:
        return None
    return sum(values, ZERO) / len(values)


def round_half_up(value: Decimal, places: int) -> Decimal:
    """Round like SQL ROUND(value, places)"""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def pct_change(
    current: Decimal,
    previous: Optional[Decimal],
    places: int = 2,
) -> Optional[Decimal]:
    """
    Percentage change from ``previous`` to ``current``.

    Returns None when there is no previous value or it is zero, mirroring
    SQL's NULLIF(previous, 0) division.
    """
    if previous is None or previous == ZERO:
        return None
    return round_half_up((current - previous) / previous * 100, places)
