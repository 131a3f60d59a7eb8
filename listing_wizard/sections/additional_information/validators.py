"""Additional information validators."""

from typing import Dict, Any, List

NO_FIXTURE_LEASE = "none"


def validate_tax_rate(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a MUD tax rate per $100 of assessed valuation.

    Args:
        value: Rate to validate (e.g., '$1.25' or '1.25')
        ctx: Context dictionary (unused)

    Returns:
        Rate without a dollar sign

    Raises:
        ValueError: If the rate is not a number between 0 and 10
    """
    cleaned = str(value).strip().lstrip('$').strip()

    try:
        rate = float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid tax rate: {value}")

    if not (0 <= rate <= 10):
        raise ValueError("Tax rate must be between $0 and $10 per $100 of valuation")

    return cleaned


def validate_fixture_leases(value: List[str], ctx: Dict[str, Any]) -> List[str]:
    """'None' excludes every other fixture lease selection.

    Raises:
        ValueError: If 'none' is selected together with a lease
    """
    if NO_FIXTURE_LEASE in value and len(value) > 1:
        raise ValueError("'None' cannot be combined with other fixture leases")
    return value
