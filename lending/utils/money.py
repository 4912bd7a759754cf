from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    """Quantize an amount to cents."""
    return as_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def floor_zero(value) -> Decimal:
    amount = money(value)
    return amount if amount > ZERO else ZERO


def total(values: Iterable) -> Decimal:
    return money(sum((as_decimal(value) for value in values), Decimal("0")))
