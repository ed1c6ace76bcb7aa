"""
Decimal utilities for money calculations.

All prices, sizes and fees flow through the engine as Decimal. Exchange
payloads arrive as floats or strings, so conversion always goes through
str() to keep binary float noise out of the arithmetic.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final


ZERO: Final[Decimal] = Decimal("0")
ONE: Final[Decimal] = Decimal("1")
HUNDRED: Final[Decimal] = Decimal("100")


def to_decimal(value: object, default: Decimal | None = None) -> Decimal | None:
    """
    Convert an exchange value to Decimal.

    Args:
        value: Float, int, str or Decimal from a payload.
        default: Value to return when conversion is impossible.

    Returns:
        Decimal value or default.

    Example:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("abc") is None
        True
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def is_usable(value: Decimal | None) -> bool:
    """Check that a value is finite and strictly positive."""
    return value is not None and value.is_finite() and value > ZERO


def safe_divide(
    numerator: Decimal,
    denominator: Decimal,
    default: Decimal = ZERO,
) -> Decimal:
    """
    Safely divide two numbers, returning default on division by zero.

    Args:
        numerator: The dividend.
        denominator: The divisor.
        default: Value to return if denominator is zero or not finite.

    Returns:
        Result of division or default value.
    """
    if not denominator.is_finite() or denominator == ZERO:
        return default
    return numerator / denominator


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """Express part as a percentage of whole."""
    return safe_divide(part * HUNDRED, whole)


def format_fixed(value: Decimal, places: int) -> str:
    """
    Render a Decimal as a fixed-point string.

    Never uses exponent notation, so the output is safe for JSON clients
    that parse it back into a decimal type.

    Example:
        >>> format_fixed(Decimal("1.698"), 4)
        '1.6980'
        >>> format_fixed(Decimal("1E-7"), 8)
        '0.00000010'
    """
    quantum = Decimal(1).scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def format_profit(profit_pct: Decimal) -> str:
    """
    Format profit percentage for display.

    Args:
        profit_pct: Profit as percentage.

    Returns:
        Signed string with four decimals.
    """
    sign = "+" if profit_pct >= 0 else ""
    return f"{sign}{format_fixed(profit_pct, 4)}%"
