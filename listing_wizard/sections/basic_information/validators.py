"""Basic information validators - address parts, areas and construction year."""

import re
from datetime import date
from typing import Dict, Any

US_STATES = frozenset([
    'AL', 'AK', 'AZ', 'AR', 'CA', 'CO', 'CT', 'DE', 'DC', 'FL', 'GA', 'HI', 'ID',
    'IL', 'IN', 'IA', 'KS', 'KY', 'LA', 'ME', 'MD', 'MA', 'MI', 'MN', 'MS', 'MO',
    'MT', 'NE', 'NV', 'NH', 'NJ', 'NM', 'NY', 'NC', 'ND', 'OH', 'OK', 'OR', 'PA',
    'RI', 'SC', 'SD', 'TN', 'TX', 'UT', 'VT', 'VA', 'WA', 'WV', 'WI', 'WY',
])

ZIP_PATTERN = re.compile(r'^\d{5}(-\d{4})?$')
AREA_PATTERN = re.compile(r'^\d+$')

EARLIEST_YEAR_BUILT = 1800


def validate_state(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a two-letter US state code.

    Returns:
        Upper-cased state code (e.g., 'TX')

    Raises:
        ValueError: If the code is not a US state or DC
    """
    code = value.strip().upper()

    if code not in US_STATES:
        raise ValueError(f"Invalid state: {value} (use the two-letter code, e.g. TX)")

    return code


def validate_zip_code(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a 5-digit or ZIP+4 code.

    Raises:
        ValueError: If the code is malformed
    """
    value = value.strip()

    if not ZIP_PATTERN.match(value):
        raise ValueError("ZIP code must be 5 digits (e.g., 78701 or 78701-1234)")

    return value


def validate_square_feet(value: str, ctx: Dict[str, Any]) -> str:
    """Validate an area in square feet.

    Thousands separators and a trailing "sq ft" are accepted, so "2,400"
    and "2400 sq ft" are equivalent.

    Args:
        value: Area to validate
        ctx: Context dictionary (unused)

    Returns:
        Area as a whole number string (e.g., '2400')

    Raises:
        ValueError: If the area is not a positive whole number
    """
    cleaned = re.sub(r'(?i)\s*(sq\.?\s*ft\.?|sqft)$', '', value.strip())
    cleaned = cleaned.replace(',', '').strip()

    if not AREA_PATTERN.match(cleaned):
        raise ValueError(f"Invalid area: {value} (enter whole square feet, e.g. 2,400)")

    if int(cleaned) <= 0:
        raise ValueError("Area must be greater than zero")

    return str(int(cleaned))


def validate_year_built(value: str, ctx: Dict[str, Any]) -> str:
    """Validate the construction year.

    New construction may be finished next year, so one year ahead is allowed.

    Raises:
        ValueError: If the year is not four digits or out of range
    """
    value = value.strip()
    latest = date.today().year + 1

    if not re.match(r'^\d{4}$', value):
        raise ValueError(f"Invalid year: {value} (use four digits, e.g. 1995)")

    if not (EARLIEST_YEAR_BUILT <= int(value) <= latest):
        raise ValueError(f"Year built must be between {EARLIEST_YEAR_BUILT} and {latest}")

    return value
