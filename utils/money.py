"""
Money helpers.

All prices are handled as ``decimal.Decimal`` and rounded half-up to cents
at output boundaries (API responses, PayPal amounts, persisted breakdowns).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated

from pydantic import PlainSerializer

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Decimal in Python, float in JSON responses
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def to_decimal(value) -> Decimal:
    """
    Convert a numeric value to Decimal without binary float artefacts.

    Args:
        value: int, float, str or Decimal (None is treated as zero)

    Returns:
        Decimal representation of the value
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(value) -> Decimal:
    """
    Round a monetary value half-up to two decimal places.

    Example:
        >>> to_cents(Decimal("7.125"))
        Decimal('7.13')
    """
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_paypal_amount(value) -> str:
    """PayPal expects amounts as strings with exactly two decimals."""
    return f"{to_cents(value):.2f}"
