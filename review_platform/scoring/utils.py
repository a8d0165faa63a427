"""
Decimal Utilities
review_platform/scoring/utils.py

Provides precision-safe decimal math for scoring calculations.
"""

from decimal import Decimal, ROUND_HALF_UP


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(
    value: Decimal,
    min_val: Decimal = Decimal("0"),
    max_val: Decimal = Decimal("100"),
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def fraction(numerator: int, denominator: int) -> Decimal:
    """
    Exact ratio of two counts as a Decimal.

    Raises ZeroDivisionError when denominator is zero; callers are expected
    to guard against empty inputs before calling.
    """
    if denominator == 0:
        raise ZeroDivisionError("fraction denominator must be non-zero")
    return Decimal(numerator) / Decimal(denominator)
