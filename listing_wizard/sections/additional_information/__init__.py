"""Additional information section - districts, leases and insurance history."""

from .validators import validate_tax_rate, validate_fixture_leases

__all__ = [
    'validate_tax_rate',
    'validate_fixture_leases',
]
