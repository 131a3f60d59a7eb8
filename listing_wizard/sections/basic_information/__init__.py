"""Basic information section - property address, type, size and occupancy."""

from .validators import validate_state, validate_zip_code, validate_square_feet, validate_year_built

__all__ = [
    'validate_state',
    'validate_zip_code',
    'validate_square_feet',
    'validate_year_built',
]
