"""Decimal and score rounding utilities"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENTS = Decimal("0.01")

Number = Union[int, float, Decimal, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal via str so floats don't carry binary noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Number) -> Decimal:
    """Quantize a monetary value to cents, half-up"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, ties away from zero (Python's round() is banker's)"""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, lower: float, upper: float) -> float:
    """Restrict value to the closed interval [lower, upper]"""
    return max(lower, min(upper, value))
