"""
Genetic Rebalancer — Decimal arithmetic substrate.
Layer 0 (interfaces). Zero dependencies.

Every money and percentage value in the search is a decimal.Decimal.
Inexact operations (division) run under DECIMAL_CONTEXT so the same
inputs always yield the same digits. Stagnation detection compares
fitness values for exact equality, so this matters.
"""
from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Context, Decimal, InvalidOperation, localcontext

DECIMAL_CONTEXT = Context(prec=34, rounding=ROUND_HALF_EVEN)

ZERO = Decimal(0)
HUNDRED = Decimal(100)


def to_decimal(value) -> Decimal:
    """
    Convert an int, str or Decimal into a finite Decimal.

    Floats are rejected: a float has already lost the decimal digits
    the caller meant.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise TypeError("bool is not a decimal value")
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not a decimal number: {value!r}") from None
    elif isinstance(value, float):
        raise TypeError(
            f"float {value!r} cannot be used as an exact decimal; pass a string"
        )
    else:
        raise TypeError(f"unsupported decimal type: {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"decimal must be finite, got {value!r}")
    return result


def percentage_of(part: Decimal, total: Decimal) -> Decimal:
    """100 * part / total, or 0 when total is zero."""
    if total.is_zero():
        return ZERO
    with localcontext(DECIMAL_CONTEXT):
        return (HUNDRED * part) / total


def decimal_sum(values) -> Decimal:
    total = ZERO
    with localcontext(DECIMAL_CONTEXT):
        for v in values:
            total += v
    return total
