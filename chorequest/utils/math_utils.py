"""Rounding helpers shared by the points engine.

Python's built-in round() uses banker's rounding (round(0.5) == 0). Point
awards use round-half-up, so 0.5 becomes 1 and 2.25 stays 2.
"""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, digits: int = 0):
    """Round half away from zero at the given precision.

    The float is converted through its shortest repr first, so products such
    as 10 * 0.05 round as the decimal 0.5 they print as.

    Examples:
        round_half_up(0.5) -> 1
        round_half_up(2.25) -> 2
        round_half_up(66.665, 2) -> 66.67
    """
    exponent = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, yielding 0.0 instead of raising when the denominator is 0."""
    if not denominator:
        return 0.0
    return numerator / denominator
