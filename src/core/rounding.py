"""
Project-wide rounding convention.

All displayed percentages, confidence scores and readiness values use
round-half-up (2.5 -> 3, 46.5 -> 47), never Python's banker's rounding.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round a number half away from zero at the given precision.

    The float is routed through its shortest repr so values such as
    0.125 round on their decimal form rather than their binary expansion.

    Args:
        value: Number to round
        ndigits: Decimal places to keep

    Returns:
        Rounded value as float
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to_int(value: float) -> int:
    """Round half-up to the nearest integer."""
    return int(round_half_up(value, 0))
