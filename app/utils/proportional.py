# app/utils/proportional.py
"""
Proportional allocation shared by order pricing and sales analytics.

Pricing splits an order's post-coupon total back over its lines; the
dashboard does the same from a persisted ``total_amount``. Both go through
``split_proportionally`` so they can never round differently. Rounding for
display happens only in ``present``.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Union

Number = Union[int, float, Decimal, str]

DISPLAY_QUANTUM = Decimal("0.1")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def allocation_ratio(target_total: Number, parts_total: Number) -> Decimal:
    """Ratio that scales ``parts_total`` onto ``target_total`` (1 when there is nothing to scale)."""
    parts_total = to_decimal(parts_total)
    if parts_total <= 0:
        return Decimal("1")
    return to_decimal(target_total) / parts_total


def split_proportionally(amounts: Iterable[Number], target_total: Number) -> List[Decimal]:
    """Scale ``amounts`` so they keep their proportions and sum to ``target_total``."""
    amounts = [to_decimal(a) for a in amounts]
    ratio = allocation_ratio(target_total, sum(amounts, Decimal("0")))
    return [a * ratio for a in amounts]


def percentage_of(amount: Number, percentage: Number) -> Decimal:
    return to_decimal(amount) * to_decimal(percentage) / Decimal("100")


def present(value: Number) -> float:
    """Round a monetary value for the outside world; ties round away from zero."""
    return float(to_decimal(value).quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP))
