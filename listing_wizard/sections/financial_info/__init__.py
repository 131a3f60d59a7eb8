"""Financial information section - mortgages, taxes, claims and liens."""

from .validators import validate_currency, validate_interest_rate, validate_date, validate_sale_date

__all__ = [
    'validate_currency',
    'validate_interest_rate',
    'validate_date',
    'validate_sale_date',
]
