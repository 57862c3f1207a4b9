"""Rounding helpers applied at function boundaries"""

import math
from decimal import Decimal, ROUND_HALF_UP


def _round_places(value: float, places: int) -> float:
    # Decimal(float) is the exact binary value: only true ties (0.125) round up, 2.675 stays below half
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    """Monetary figures: 2 decimal places, ties away from zero"""
    return _round_places(value, 2)


def round_ratio(value: float) -> float:
    """Margins, shares and z-scores: 4 decimal places, ties away from zero"""
    return _round_places(value, 4)


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounding up (builtin round() is half-to-even)"""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
