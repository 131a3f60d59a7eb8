"""Sections module - each section package exports its validators for engine registration."""

from . import (
    account, basic_information, title_holder, financial_info, seller_disclosure,
    additional_information, listing_price,
)

__all__ = [
    'account',
    'basic_information',
    'title_holder',
    'financial_info',
    'seller_disclosure',
    'additional_information',
    'listing_price',
]
