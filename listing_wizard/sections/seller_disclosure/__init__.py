"""Seller disclosure section - property condition and flood history."""

from .validators import validate_roof_age

__all__ = [
    'validate_roof_age',
]
