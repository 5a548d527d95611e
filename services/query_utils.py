"""Utility helpers for building filtered Peewee queries."""

from decimal import Decimal
from typing import Any, Iterable

from peewee import Field, ModelSelect, Node, fn


def icontains(field: Field, value: str) -> Node:
    """Case-insensitive ``LIKE %value%`` that behaves the same on SQLite and Postgres."""
    return fn.LOWER(field).contains(value.strip().lower())


def apply_conditions(query: ModelSelect, conditions: Iterable[Node | None]) -> ModelSelect:
    """Combine all non-empty conditions with AND."""
    for condition in conditions:
        if condition is not None:
            query = query.where(condition)
    return query


def paginate(query: ModelSelect, limit: int | None, offset: int = 0) -> ModelSelect:
    """Apply an offset/limit pair; ``limit=None`` returns everything."""
    if limit is not None:
        query = query.limit(limit)
    if offset:
        query = query.offset(offset)
    return query


def sum_column(query: ModelSelect, field: Field) -> Decimal:
    """Вернуть сумму значений ``field`` для переданного запроса."""

    aggregate = (
        query.clone()
        .limit(None)
        .offset(None)
        .order_by()
        .select(fn.COALESCE(fn.SUM(field), 0))
    )
    value: Any | None = aggregate.scalar()
    total = Decimal(str(value)) if value is not None else Decimal("0")
    # SQLite суммирует DecimalField как float
    places = getattr(field, "decimal_places", None)
    if places is not None:
        total = total.quantize(Decimal(1).scaleb(-places))
    return total
