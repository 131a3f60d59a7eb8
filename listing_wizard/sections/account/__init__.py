"""Account section - sign-in provider and contact details."""

from .validators import validate_name, validate_email, validate_phone

__all__ = [
    'validate_name',
    'validate_email',
    'validate_phone',
]
