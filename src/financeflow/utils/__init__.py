"""Utility functions for financeflow."""

from financeflow.utils.date_parser import parse_date, parse_month
from financeflow.utils.amount_parser import parse_amount, format_amount

__all__ = ["parse_date", "parse_month", "parse_amount", "format_amount"]
