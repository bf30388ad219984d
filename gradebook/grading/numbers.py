"""Decimal helpers shared by the grading modules."""
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP, getcontext

from .. import config


def to_decimal(value):
    """
    Convert a raw input value to Decimal.

    Returns None for values that cannot be read as a number. Non-finite
    values (NaN, Infinity) are returned as-is so callers can report them.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # repr keeps the shortest round-tripping form (0.1 -> '0.1')
        return Decimal(repr(value))
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def round_percentage(value):
    """
    Round to the configured number of places, halves away from zero.

    Unclamped percentages can be arbitrarily large, so the precision is
    widened to fit every integer digit plus the decimal places.
    """
    value = to_decimal(value)
    places = config.PERCENTAGE_PLACES
    context = Context(prec=max(getcontext().prec, value.adjusted() + places + 2))
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP, context=context)


def ratio_percentage(part, whole):
    """part / whole * 100, rounded; 0 when whole is not positive."""
    part, whole = to_decimal(part), to_decimal(whole)
    if whole <= 0:
        return round_percentage(0)
    return round_percentage(part * 100 / whole)
