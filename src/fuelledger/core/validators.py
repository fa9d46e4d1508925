# File: src/fuelledger/core/validators.py
"""Reusable money and text validation utilities."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")

# NUMERIC(14, 2) ceiling
MAX_AMOUNT = Decimal("999999999999.99")


def to_money(value: Decimal | float | int | str) -> Decimal:
    """
    Parse a monetary value and round it to cents (half-up).

    Raises:
        ValueError: If value is not numeric or exceeds the column range
    """
    try:
        decimal_value = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid currency format: {value}") from e

    if not decimal_value.is_finite():
        raise ValueError(f"Invalid currency format: {value}")

    if abs(decimal_value) > MAX_AMOUNT:
        raise ValueError(f"Currency value exceeds maximum allowed: {MAX_AMOUNT}")

    return decimal_value.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """amount * percentage / 100, rounded to cents."""
    return (amount * percentage / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def sanitize_text(value: str | None) -> str | None:
    """
    Strip HTML tags and surrounding whitespace.

    Returns:
        Cleaned text or None if nothing remains
    """
    if not value:
        return None

    cleaned = re.sub(r"<[^>]+>", "", value).strip()
    return cleaned or None
