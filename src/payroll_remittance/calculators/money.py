"""Decimal money helpers.

Rounding:
- BRL to 2 decimals on every record field
- Internal compute keeps full Decimal precision
- Integer cents only at the remittance boundary
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a loosely typed amount to Decimal (None is zero).

    Floats go through ``str`` so 33.4 becomes Decimal("33.4"), not its
    binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert an amount to integer cents, rounding half up."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def non_negative(amount: Decimal) -> Decimal:
    """Floor an amount at zero."""
    return amount if amount > ZERO else ZERO


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts starting from an exact zero."""
    total = ZERO
    for amount in amounts:
        total += amount
    return total
