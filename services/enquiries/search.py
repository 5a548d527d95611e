"""Клиентский поиск по уже отфильтрованным обращениям."""

from __future__ import annotations

from typing import Iterable

from .dto import EnquiryFilter, EnquiryRowDTO
from .enquiry_service import DEFAULT_PAGE_SIZE, get_enquiries


def _haystack(row: EnquiryRowDTO) -> tuple[str, str, str]:
    return (
        (row.company_name or "").lower(),
        (row.contact_name or "").lower(),
        (row.product_interest or "").lower(),
    )


def matches(row: EnquiryRowDTO, term: str) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in part for part in _haystack(row))


def apply_search(rows: Iterable[EnquiryRowDTO], term: str | None) -> list[EnquiryRowDTO]:
    """Отобрать строки, где компания, контакт или продукт содержат ``term``.

    Пустой запрос возвращает строки без изменений.
    """
    rows = list(rows)
    if not term or not term.strip():
        return rows
    return [row for row in rows if matches(row, term)]


def filter_and_search(
    filters: EnquiryFilter | None = None,
    limit: int | None = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[EnquiryRowDTO]:
    """Серверные фильтры, затем клиентский поиск по ``filters.search_term``."""
    rows = get_enquiries(filters, limit=limit, offset=offset)
    term = filters.search_term if filters else ""
    return apply_search(rows, term)
