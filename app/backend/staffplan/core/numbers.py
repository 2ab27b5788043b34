"""Decimal helpers shared by the engine services."""

from __future__ import annotations

from decimal import Decimal

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
Q2 = Decimal("0.01")


def q2(value: Decimal) -> Decimal:
    return value.quantize(Q2)


def safe_div(numerator: Decimal, denominator: Decimal | int) -> Decimal:
    """Divide, returning zero instead of raising on a zero denominator."""

    if denominator == 0:
        return ZERO
    return numerator / Decimal(denominator)


def to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean values are not numeric amounts.")
    if isinstance(value, int):
        return Decimal(value)
    # floats go through str() so 0.1 stays 0.1
    return Decimal(str(value))
