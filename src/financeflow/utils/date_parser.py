"""Date and month parsing utilities."""

import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from financeflow.domain.entities import Month

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative words "today", "yesterday" and "tomorrow".

    Args:
        date_str: Date string in various formats
        today: Reference date for relative words (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str, today: Optional[date] = None) -> Month:
    """Parse a month string into a Month.

    Supports "YYYY-MM", "this month", "last month", "next month", and any
    date parse_date understands (its month is used).

    Raises:
        ValueError: If the string cannot be parsed
    """
    month_str = month_str.strip().lower()
    today = today or date.today()

    relative_months = {
        "this month": today,
        "last month": today - relativedelta(months=1),
        "next month": today + relativedelta(months=1),
    }
    if month_str in relative_months:
        return Month.from_date(relative_months[month_str])

    match = _MONTH_PATTERN.match(month_str)
    if match:
        return Month(int(match.group(1)), int(match.group(2)))

    return Month.from_date(parse_date(month_str, today=today))
