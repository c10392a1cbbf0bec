"""
Money Utilities - Safe Decimal operations for monetary values.

Internal arithmetic stays in full-precision Decimal. Rounding to two places
happens only when a value is shown or leaves the process.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

# Precision for displayed money (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

# Fixed currency label used across product, cart and checkout screens
CURRENCY_LABEL = "PKR"

Number = Union[str, int, float, Decimal]


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
        # Go through str for floats so 0.1 stays 0.1
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_decimal(value: Number) -> Decimal:
    """
    Strict conversion for ingested data.

    Unlike `to_decimal`, invalid input raises ValueError instead of becoming 0.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value) if isinstance(value, float) else value)
        except (InvalidOperation, ValueError, TypeError) as e:
            raise ValueError(f"not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def round_money(value: Number) -> Decimal:
    """Round a monetary value to two decimal places (half up)."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def format_money(value: Number, label: str = CURRENCY_LABEL) -> str:
    """
    Format a monetary value for display.

    Args:
        value: Value to format
        label: Currency label placed before the amount

    Returns:
        Formatted string, e.g. "PKR 1,234.50"
    """
    return f"{label} {round_money(value):,.2f}"


def to_float(value: Number) -> float:
    """
    Convert to a rounded float for JSON payloads.

    Use only at boundaries, not for internal calculations.
    """
    return float(round_money(value))


def subtract(a: Number, b: Number) -> Decimal:
    """Safe subtraction of monetary values."""
    return to_decimal(a) - to_decimal(b)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def divide(value: Number, divisor: Number) -> Decimal:
    """Safe division of monetary value."""
    d = to_decimal(divisor)
    if d == 0:
        return Decimal("0")
    return to_decimal(value) / d


def percent_multiplier(percent_value: Number) -> Decimal:
    """Multiplier that removes `percent_value` percent, e.g. 20 -> 0.8."""
    return subtract(Decimal("1"), divide(percent_value, Decimal("100")))
