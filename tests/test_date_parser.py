"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from coopledger.utils.date_parser import get_date_range, parse_date, parse_date_or_default, year_bounds

TODAY = date(2024, 5, 15)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    result = parse_date("2024-01-15")
    assert result == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    assert parse_date("today") == date.today()
    assert parse_date("Today", today=TODAY) == TODAY


def test_parse_yesterday_and_tomorrow():
    assert parse_date("yesterday", today=TODAY) == TODAY - timedelta(days=1)
    assert parse_date("tomorrow", today=TODAY) == TODAY + timedelta(days=1)


def test_parse_relative_months():
    """Relative month keywords resolve to the first day of the month."""
    assert parse_date("last month", today=TODAY) == date(2024, 4, 1)
    assert parse_date("this month", today=TODAY) == date(2024, 5, 1)
    assert parse_date("next month", today=TODAY) == date(2024, 6, 1)
    assert parse_date("last month", today=date(2024, 1, 20)) == date(2023, 12, 1)


def test_parse_relative_years_and_quarter():
    assert parse_date("this year", today=TODAY) == date(2024, 1, 1)
    assert parse_date("last year", today=TODAY) == date(2023, 1, 1)
    assert parse_date("this quarter", today=TODAY) == date(2024, 4, 1)


def test_parse_invalid():
    """Test parsing invalid relative date."""
    with pytest.raises(ValueError):
        parse_date("last invalid")
    with pytest.raises(ValueError):
        parse_date("   ")


def test_parse_standard_formats():
    """Test parsing various standard date formats."""
    # These should all work via dateutil parser
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)


def test_parse_date_or_default():
    default = date(2024, 1, 1)
    assert parse_date_or_default("2024-03-05", default) == date(2024, 3, 5)
    assert parse_date_or_default(date(2022, 2, 2), default) == date(2022, 2, 2)
    assert parse_date_or_default("", default) == default
    assert parse_date_or_default(None, default) == default
    assert parse_date_or_default("garbage", default) == default


@pytest.mark.parametrize(
    "period,expected",
    [
        ("this-month", (date(2024, 5, 1), TODAY)),
        ("last-month", (date(2024, 4, 1), date(2024, 4, 30))),
        ("this-quarter", (date(2024, 4, 1), TODAY)),
        ("last-quarter", (date(2024, 1, 1), date(2024, 3, 31))),
        ("this-year", (date(2024, 1, 1), TODAY)),
        ("last-year", (date(2023, 1, 1), date(2023, 12, 31))),
    ],
)
def test_get_date_range(period, expected):
    assert get_date_range(period, today=TODAY) == expected


def test_get_date_range_year_boundary():
    """Past periods in January reach back into the previous year."""
    january = date(2024, 1, 10)
    assert get_date_range("last-month", today=january) == (date(2023, 12, 1), date(2023, 12, 31))
    assert get_date_range("last-quarter", today=january) == (date(2023, 10, 1), date(2023, 12, 31))


def test_get_date_range_invalid_period():
    """Test get_date_range with invalid period."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("invalid-period")


def test_year_bounds():
    assert year_bounds(2024) == (date(2024, 1, 1), date(2024, 12, 31))
