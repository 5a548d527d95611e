"""Helpers for dates shown in lists, dashboards and exports."""

from __future__ import annotations

import math
from datetime import date, datetime

DISPLAY_DATE_FORMAT = "%b %d, %Y"


def today_iso(today: date | None = None) -> str:
    """Сегодняшняя дата в формате ``YYYY-MM-DD``."""
    return (today or date.today()).isoformat()


def _as_datetime(value: date | datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


def format_date(value: date | datetime | str | None) -> str:
    """Дата в виде ``Jan 05, 2026``; ``-`` если разобрать не удалось."""
    if value in (None, ""):
        return "-"
    try:
        return _as_datetime(value).strftime(DISPLAY_DATE_FORMAT)
    except (TypeError, ValueError):
        return "-"


def days_until(value: date | datetime | str, now: datetime | None = None) -> int:
    """Количество дней до даты (с округлением вверх, как в карточках)."""
    target = _as_datetime(value)
    now = now or datetime.now()
    diff = (target - now).total_seconds() / 86400
    return math.ceil(diff)


def relative_date_string(value: date | datetime | str, now: datetime | None = None) -> str:
    days = days_until(value, now)
    if days < 0:
        return f"{abs(days)} days ago"
    if days == 0:
        return "Today"
    if days == 1:
        return "Tomorrow"
    return f"In {days} days"
