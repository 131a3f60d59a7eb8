"""Listing price section - asking price, unrepresented buyers and commission."""

from .validators import validate_price, validate_commission

__all__ = [
    'validate_price',
    'validate_commission',
]
