from datetime import date, datetime
from decimal import Decimal

import pytest

from utils.money import format_currency
from utils.text_utils import truncate
from utils.time_utils import days_until, format_date, relative_date_string, today_iso

NOW = datetime(2026, 3, 10, 12, 0)


@pytest.mark.parametrize(
    "value, expected",
    [
        (datetime(2026, 3, 10, 18, 0), "Tomorrow"),
        (datetime(2026, 3, 10, 12, 0), "Today"),
        (datetime(2026, 3, 14, 12, 0), "In 4 days"),
        (datetime(2026, 3, 7, 12, 0), "3 days ago"),
    ],
)
def test_relative_date_string(value, expected):
    assert relative_date_string(value, now=NOW) == expected


def test_days_until_rounds_up():
    assert days_until(datetime(2026, 3, 11, 13, 0), now=NOW) == 2


def test_format_date_and_today_iso():
    assert format_date(date(2026, 1, 5)) == "Jan 05, 2026"
    assert format_date("2026-01-05") == "Jan 05, 2026"
    assert format_date(None) == "-"
    assert format_date("not a date") == "-"
    assert today_iso(date(2026, 1, 5)) == "2026-01-05"


def test_money_formatting():
    assert format_currency(Decimal("12500")) == "$12,500.00"
    assert format_currency(1500.5) == "$1,500.50"
    assert format_currency(Decimal("-20")) == "-$20.00"
    assert format_currency(None) == "$0.00"


def test_truncate():
    assert truncate("Industrial sensors", 10) == "Industr..."
    assert truncate("short", 10) == "short"
