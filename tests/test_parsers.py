"""Tests for date, month and amount parsing."""

from datetime import date
from decimal import Decimal

import pytest

from financeflow.domain.entities import Month
from financeflow.utils.amount_parser import format_amount, parse_amount
from financeflow.utils.date_parser import parse_date, parse_month

TODAY = date(2024, 3, 15)


def test_parse_date_absolute():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_date_relative():
    """Test parsing relative dates."""
    assert parse_date("today", today=TODAY) == TODAY
    assert parse_date("Yesterday", today=TODAY) == date(2024, 3, 14)
    assert parse_date("tomorrow", today=TODAY) == date(2024, 3, 16)


def test_parse_date_invalid():
    """Test that an invalid date raises ValueError."""
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_parse_month():
    """Test parsing months in the supported formats."""
    assert parse_month("2024-03") == Month(2024, 3)
    assert parse_month("this month", today=TODAY) == Month(2024, 3)
    assert parse_month("last month", today=date(2024, 1, 10)) == Month(2023, 12)
    assert parse_month("next month", today=date(2024, 12, 10)) == Month(2025, 1)
    assert parse_month("2024-02-29") == Month(2024, 2)


def test_parse_month_invalid():
    """Test that an invalid month raises ValueError."""
    with pytest.raises(ValueError):
        parse_month("2024-13")


def test_parse_amount_formats():
    """Test parsing amounts in various formats."""
    assert parse_amount("123.45") == Decimal("123.45")
    assert parse_amount("$1,234.56") == Decimal("1234.56")
    assert parse_amount("-85.75") == Decimal("-85.75")
    assert parse_amount("(50.00)") == Decimal("-50.00")


def test_parse_amount_invalid():
    """Test that invalid amounts raise ValueError."""
    with pytest.raises(ValueError):
        parse_amount("")
    with pytest.raises(ValueError):
        parse_amount("abc")


def test_format_amount():
    """Test currency formatting."""
    assert format_amount(Decimal("1234.5")) == "$1,234.50"
    assert format_amount(Decimal("-85.75")) == "-$85.75"
    assert format_amount(Decimal("10"), signed=True) == "+$10.00"
