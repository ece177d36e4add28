"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = (
    "this-month",
    "last-month",
    "this-quarter",
    "last-quarter",
    "this-year",
    "last-year",
)


def _quarter_start(day: date) -> date:
    return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)


def _relative_date(text: str, today: date) -> Optional[date]:
    """Resolve keywords like "today", "last month" or "this year"."""
    keywords = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
        "next year": today.replace(month=1, day=1) + relativedelta(years=1),
        "this quarter": _quarter_start(today),
    }
    return keywords.get(text)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Accepts ISO dates ("2024-03-10"), free-form dates understood by dateutil
    ("10 March 2024") and relative keywords ("today", "last month", ...).

    Args:
        date_str: Date string
        today: Reference day for relative keywords, defaults to today

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None:
        raise ValueError("Empty date string")
    text = str(date_str).strip().lower()
    if not text:
        raise ValueError("Empty date string")

    relative = _relative_date(text, today or date.today())
    if relative is not None:
        return relative

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_date_or_default(value: Any, default: date) -> date:
    """Parse a loose date input, falling back to ``default`` when it is empty or malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        return default
    try:
        return parse_date(str(value))
    except ValueError:
        return default


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Periods that include today end today; past periods end on their last day.

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "last-month":
        first_of_month = today.replace(day=1)
        return first_of_month - relativedelta(months=1), first_of_month - timedelta(days=1)
    if period == "this-quarter":
        return _quarter_start(today), today
    if period == "last-quarter":
        quarter_start = _quarter_start(today)
        return quarter_start - relativedelta(months=3), quarter_start - timedelta(days=1)
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-year":
        first_of_year = today.replace(month=1, day=1)
        return first_of_year - relativedelta(years=1), first_of_year - timedelta(days=1)

    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")


def year_bounds(year: int) -> tuple[date, date]:
    """January 1 and December 31 of ``year``."""
    return date(year, 1, 1), date(year, 12, 31)
