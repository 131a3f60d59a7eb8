"""Financial information validators - amounts, rates and dates."""

import re
from datetime import datetime
from typing import Dict, Any

NO_SALE_DATE = "No date set"


def validate_currency(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a dollar amount.

    Accepts "$250,000", "250000" or "1850.50"; dollar signs, commas and
    spaces are dropped.

    Args:
        value: Amount to validate
        ctx: Context dictionary (unused)

    Returns:
        Amount with two decimals and no separators (e.g., '250000.00')

    Raises:
        ValueError: If the amount is not a non-negative number
    """
    cleaned = re.sub(r'[$,\s]', '', str(value))

    if not cleaned:
        raise ValueError("Amount cannot be empty")

    try:
        amount = float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid amount: {value}")

    if amount < 0:
        raise ValueError("Amount cannot be negative")

    return f"{amount:.2f}"


def validate_interest_rate(value: str, ctx: Dict[str, Any]) -> str:
    """Validate an annual interest rate in percent (e.g., '3.75' or '3.75%').

    Returns:
        Rate without the percent sign

    Raises:
        ValueError: If the rate is not between 0 and 30
    """
    cleaned = str(value).strip().rstrip('%').strip()

    try:
        rate = float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid interest rate: {value}")

    if not (0 < rate <= 30):
        raise ValueError("Interest rate must be between 0 and 30 percent")

    return cleaned


def validate_date(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a calendar date written as MM/DD/YYYY.

    Raises:
        ValueError: If the date is malformed or does not exist
    """
    value = str(value).strip()
    try:
        parsed = datetime.strptime(value, "%m/%d/%Y")
    except ValueError:
        raise ValueError("Please enter a date as MM/DD/YYYY")
    return parsed.strftime("%m/%d/%Y")


def validate_sale_date(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a foreclosure sale date, allowing that none is set yet."""
    if str(value).strip().lower() in ('no date set', 'no date', 'none', 'n/a'):
        return NO_SALE_DATE
    return validate_date(value, ctx)
