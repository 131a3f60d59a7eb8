"""Account validators - names, email addresses and US phone numbers."""

import re
from typing import Dict, Any

EMAIL_PATTERN = re.compile(r'^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$', re.IGNORECASE)


def validate_name(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a first or last name.

    Args:
        value: Name to validate
        ctx: Context dictionary (unused)

    Returns:
        Stripped name

    Raises:
        ValueError: If the name is shorter than 2 characters
    """
    value = value.strip()

    if not value:
        raise ValueError("Name cannot be empty")

    if len(value) < 2:
        raise ValueError("Name must be at least 2 characters")

    return value


def validate_email(value: str, ctx: Dict[str, Any]) -> str:
    """Validate an email address.

    Args:
        value: Email address to validate
        ctx: Context dictionary (unused)

    Returns:
        Stripped email address

    Raises:
        ValueError: If the address is malformed
    """
    value = value.strip()

    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")

    return value


def validate_phone(value: str, ctx: Dict[str, Any]) -> str:
    """Validate a US phone number and format it as (XXX) XXX-XXXX.

    Accepts any punctuation (555.123.4567, 555-123-4567, (555) 123 4567)
    and a leading +1 country code.

    Args:
        value: Phone number to validate
        ctx: Context dictionary (unused)

    Returns:
        Phone number formatted as (XXX) XXX-XXXX

    Raises:
        ValueError: If the number does not have exactly 10 digits
    """
    digits = re.sub(r'\D', '', str(value))

    # +1 country code
    if len(digits) == 11 and digits.startswith('1'):
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Please enter a valid phone number (10 digits)")

    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
