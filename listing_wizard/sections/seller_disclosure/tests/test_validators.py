"""Tests for seller disclosure validators"""
import pytest
from listing_wizard.sections.seller_disclosure.validators import validate_roof_age


@pytest.mark.parametrize("value, expected", [
    ("12", "12"),
    ("12 years", "12"),
    ("1 Year", "1"),
    ("8yrs", "8"),
    ("0", "0"),
    ("150", "150"),
])
def test_validate_roof_age_accepts_years(value, expected):
    assert validate_roof_age(value, {}) == expected


@pytest.mark.parametrize("value", ["151", "-1"])
def test_validate_roof_age_rejects_out_of_range(value):
    with pytest.raises(ValueError, match="between 0 and 150"):
        validate_roof_age(value, {})


@pytest.mark.parametrize("value", ["old", "12.5", "about ten years"])
def test_validate_roof_age_rejects_non_numbers(value):
    with pytest.raises(ValueError, match="whole number"):
        validate_roof_age(value, {})
