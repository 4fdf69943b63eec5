"""
Tests for numeric cell parsing.
"""

from adpulse.normalizer.numbers import parse_numeric


def test_currency_and_separators_stripped():
    assert parse_numeric("₹1,234.50") == 1234.50
    assert parse_numeric("$ 2,000") == 2000.0
    assert parse_numeric(" 12 ") == 12.0


def test_empty_and_missing_are_zero():
    assert parse_numeric("") == 0
    assert parse_numeric(None) == 0


def test_numbers_pass_through():
    assert parse_numeric(42) == 42
    assert parse_numeric(3.5) == 3.5


def test_unparseable_is_zero():
    assert parse_numeric("n/a") == 0
    assert parse_numeric("-") == 0
    assert parse_numeric(float("nan")) == 0
    assert parse_numeric("Infinity") == 0


def test_leading_number_prefix():
    assert parse_numeric("12.5%") == 12.5
