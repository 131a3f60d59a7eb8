"""Listing price validators - asking price and buyer agent commission."""

import re
from typing import Dict, Any

COMMISSION_MIN = 0.0
COMMISSION_MAX = 3.0
COMMISSION_STEP = 0.25
COMMISSION_DEFAULT = 2.5

PRICE_PATTERN = re.compile(r'^\d+(\.\d+)?$')


def validate_price(value: str, ctx: Dict[str, Any]) -> str:
    """Validate the desired listing price.

    A dollar sign, thousands separators and spaces are dropped first, so
    "$425,000" and "425000" are equivalent. Anything else (a minus sign,
    letters, exponents) is rejected rather than stripped.

    Args:
        value: Price to validate
        ctx: Context dictionary (unused)

    Returns:
        Price as a plain number string (e.g., '425000')

    Raises:
        ValueError: If the price is missing, malformed or not positive
    """
    cleaned = re.sub(r'[$,\s]', '', str(value))

    if not cleaned:
        raise ValueError("Please enter a price")

    if PRICE_PATTERN.match(cleaned.lstrip('-')) and cleaned.startswith('-'):
        raise ValueError("Price must be greater than zero")

    if not PRICE_PATTERN.match(cleaned):
        raise ValueError(f"Invalid price: {value}")

    if float(cleaned) <= 0:
        raise ValueError("Price must be greater than zero")

    return cleaned


def validate_commission(value: str, ctx: Dict[str, Any]) -> str:
    """Validate the buyer agent commission percentage.

    Must be between 0 and 3 percent in quarter-point steps.

    Returns:
        Commission without the percent sign (e.g., '2.5')

    Raises:
        ValueError: If out of range or not a multiple of 0.25
    """
    cleaned = str(value).strip().rstrip('%').strip()

    try:
        commission = float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid commission: {value}")

    if not (COMMISSION_MIN <= commission <= COMMISSION_MAX):
        raise ValueError(f"Commission must be between {COMMISSION_MIN:g}% and {COMMISSION_MAX:g}%")

    if (commission / COMMISSION_STEP) != int(commission / COMMISSION_STEP):
        raise ValueError(f"Commission must be in steps of {COMMISSION_STEP}%")

    return f"{commission:g}"
