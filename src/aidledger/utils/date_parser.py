"""Date parsing utilities."""

from datetime import date, timedelta
import re

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_DAYS_AGO = re.compile(r"^(\d+)\s+days?\s+ago$")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "15 Jan 2024") and a few relative
    forms: "today", "yesterday", "tomorrow" and "N days ago".

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = date.today()

    if text == "today":
        return today
    if text == "yesterday":
        return today - timedelta(days=1)
    if text == "tomorrow":
        return today + timedelta(days=1)

    match = _DAYS_AGO.match(text)
    if match:
        return today - timedelta(days=int(match.group(1)))

    try:
        return date_parser.parse(text, dayfirst=False).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_month_range(period: str) -> tuple[date, date]:
    """Start and end dates of "this-month" or "last-month".

    Raises:
        ValueError: If the period is not recognized
    """
    today = date.today()
    first_of_month = today.replace(day=1)

    if period == "this-month":
        return first_of_month, today
    if period == "last-month":
        start = first_of_month - relativedelta(months=1)
        return start, first_of_month - timedelta(days=1)
    raise ValueError(f"Unknown period: '{period}'. Supported periods: this-month, last-month")
