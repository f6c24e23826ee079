"""
Money Utilities - Safe Decimal operations for prices.

Prices are kept as Decimal end to end so a persisted cart round-trips
without float drift.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, float):
            # Go through repr to keep the literal the user saw
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_decimal(value: Number) -> Decimal:
    """
    Convert a value to a finite Decimal, raising on anything else.

    Used when decoding persisted snapshots, where a bad price must be
    reported instead of silently becoming zero.

    Raises:
        ValueError: value is None, a bool, non-numeric, NaN or infinite
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Invalid price: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid price: {value!r}")
    return result


def round_money(value: Number) -> Decimal:
    """Round monetary value to two decimal places."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_float(value: Number) -> float:
    """
    Convert to float for JSON summaries and UI display.

    Use only at presentation boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)
