"""Tests for amount parsing."""

import pytest
from decimal import Decimal
from draftledger.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", "123.45"),
        ("-123.45 €", "-123.45"),
        ("1,234.56", "1234.56"),
        ("EUR 5.00", "5.00"),
        ("(12.00)", "-12.00"),
        ("12.50-", "-12.50"),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == Decimal(expected)


def test_parse_amount_decimal_comma():
    """Test the German number format."""
    assert parse_amount("1.234,56", decimal_comma=True) == Decimal("1234.56")
    assert parse_amount("-7,00 EUR", decimal_comma=True) == Decimal("-7.00")


@pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3"])
def test_parse_invalid_amount(text):
    with pytest.raises(ValueError):
        parse_amount(text)
