"""Numeric helpers shared by the analyzers.

Rounding is half-up (not banker's rounding) so that reported figures match
the coaching reports users already know, e.g. 2.5 -> 3 and 0.125 -> "0.13".
"""

import math
from decimal import Context, Decimal, ROUND_HALF_UP

INFINITY = float("inf")

# Beyond this magnitude fixed-point output switches to exponent form
EXPONENT_THRESHOLD = 1e21

# Enough digits for 21 integer places plus any practical number of decimals
_FIXED_CONTEXT = Context(prec=64)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    if math.isinf(value) or math.isnan(value):
        return value
    return math.floor(value + 0.5)


def round_to(value: float, places: int) -> float:
    """round_half_up at a number of decimal places (x * 10^n, round, divide)."""
    factor = 10 ** places
    return round_half_up(value * factor) / factor


def to_fixed(value: float, places: int = 2) -> str:
    """Fixed-point string with half-up rounding.

    "Infinity" for inf, "NaN" for nan, and the short exponent form
    (e.g. "1.2e+30") once |value| reaches 1e21.
    """
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return "NaN"
    if abs(value) >= EXPONENT_THRESHOLD:
        return repr(float(value))
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP, context=_FIXED_CONTEXT))


def format_number(value: float) -> str:
    """Render a number the short way: 12.0 -> "12", 12.5 -> "12.5"."""
    if isinstance(value, float):
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return repr(value)


def ratio(numerator: float, denominator: float, default: float = 0) -> float:
    """numerator / denominator, or `default` when the denominator is not positive."""
    return numerator / denominator if denominator > 0 else default
