"""Seller disclosure validators."""

from typing import Dict, Any


def validate_roof_age(value: str, ctx: Dict[str, Any]) -> str:
    """Validate the approximate roof age in whole years.

    Args:
        value: Age to validate (e.g., '12' or '12 years')
        ctx: Context dictionary (unused)

    Returns:
        Age as a string of digits

    Raises:
        ValueError: If the age is not a whole number between 0 and 150
    """
    cleaned = str(value).strip().lower()
    for suffix in ('years', 'year', 'yrs', 'yr'):
        if cleaned.endswith(suffix):
            cleaned = cleaned[:-len(suffix)].strip()
            break

    try:
        age = int(cleaned)
    except ValueError:
        raise ValueError(f"Roof age must be a whole number of years, got: {value}")

    if not (0 <= age <= 150):
        raise ValueError("Roof age must be between 0 and 150 years")

    return str(age)
