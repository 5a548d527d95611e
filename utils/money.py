"""Утилиты форматирования денежных сумм и чисел."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any

_TWO_PLACES = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def format_currency(value: Any, symbol: str = "$") -> str:
    """Отформатировать сумму с разделителями тысяч: ``$12,500.00``."""

    amount = _to_decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"

