# Overview: Decimal helpers for monetary amounts (2 places, half away from zero).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """
    Convert int/str/float/Decimal to Decimal without binary float artifacts.

    Floats go through str() so 9.99 stays 9.99 rather than 9.9900000000000002131...
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, ValueError) as exc:
        raise TypeError(f"Not a monetary amount: {value!r}") from exc


def round_money(value) -> Decimal:
    """Round to 2 decimal places; ROUND_HALF_UP rounds ties away from zero."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
