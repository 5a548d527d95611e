"""Сервисный модуль для обращений (enquiries)."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from peewee import JOIN, ModelSelect

from config import get_settings
from database.db import db
from database.models import Company, Contact, Enquiry, EnquiryStatus
from services.query_utils import apply_conditions, icontains, paginate
from services.validators import ENQUIRY_RULES, FormValidationError, validate_form_data
from .dto import EnquiryFilter, EnquiryRowDTO, ExportRow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
EXPORT_LIMIT = 1000

ENQUIRY_ALLOWED_FIELDS = {
    "company_id",
    "contact_id",
    "enquiry_date",
    "status",
    "product_interest",
    "estimated_value",
    "notes",
    "next_follow_up",
    "owner",
}

_STATUS_VALUES = {s.value for s in EnquiryStatus}


def normalize_status(value: Any) -> str:
    """Вернуть строковое значение статуса или поднять ``ValueError``."""
    raw = value.value if isinstance(value, EnquiryStatus) else str(value or "")
    if raw not in _STATUS_VALUES:
        raise ValueError(f"Unknown enquiry status: {value!r}")
    return raw


def _to_decimal(value: Any) -> Decimal | None:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise FormValidationError(
            {"estimated_value": "estimated_value must be a number"}
        ) from exc


def _clean_enquiry_data(data: dict[str, Any]) -> dict[str, Any]:
    clean: dict[str, Any] = {}
    for key, value in data.items():
        if key in ENQUIRY_ALLOWED_FIELDS:
            clean[key] = value
        elif key in {"company", "contact"}:
            clean[f"{key}_id"] = value.id if hasattr(value, "id") else value
    if "status" in clean:
        # пустой статус из формы означает «не задан»
        if clean["status"] is None or not str(clean["status"]).strip():
            del clean["status"]
        else:
            clean["status"] = normalize_status(clean["status"])
    if "estimated_value" in clean:
        clean["estimated_value"] = _to_decimal(clean["estimated_value"])
    return clean


# ──────────────────────────── Выборки ─────────────────────────────


def status_values(status: Any) -> list[str]:
    """Привести фильтр статусов к списку значений ``EnquiryStatus``."""
    if isinstance(status, str):
        status = [status]
    return [normalize_status(s) for s in status]


def _base_query() -> ModelSelect:
    return (
        Enquiry.select(Enquiry, Company, Contact)
        .join(Company, JOIN.LEFT_OUTER)
        .switch(Enquiry)
        .join(Contact, JOIN.LEFT_OUTER)
    )


def build_enquiry_query(filters: EnquiryFilter | None = None) -> ModelSelect:
    """Запрос обращений с серверными фильтрами (все условия через AND).

    ``search_term`` здесь не учитывается: поиск выполняется на клиенте
    в :func:`services.enquiries.search.apply_search`.
    """
    query = _base_query()
    if filters is None:
        return query
    conditions = [
        Enquiry.status.in_(status_values(filters.status)) if filters.status else None,
        (Enquiry.owner == filters.owner) if filters.owner else None,
        (Enquiry.enquiry_date >= filters.date_from) if filters.date_from else None,
        (Enquiry.enquiry_date <= filters.date_to) if filters.date_to else None,
        icontains(Enquiry.product_interest, filters.product_interest)
        if filters.product_interest
        else None,
        (Enquiry.company == filters.company_id) if filters.company_id else None,
    ]
    return apply_conditions(query, conditions)


def get_enquiries(
    filters: EnquiryFilter | None = None,
    limit: int | None = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[EnquiryRowDTO]:
    """Страница обращений, новые по дате обращения сверху."""
    query = build_enquiry_query(filters).order_by(
        Enquiry.enquiry_date.desc(), Enquiry.id.desc()
    )
    try:
        return [EnquiryRowDTO.from_model(e) for e in paginate(query, limit, offset)]
    except Exception:
        logger.error("❌ Ошибка загрузки обращений", exc_info=True)
        raise


def get_enquiry_by_id(enquiry_id: int) -> EnquiryRowDTO | None:
    try:
        enquiry = _base_query().where(Enquiry.id == enquiry_id).get_or_none()
    except Exception:
        logger.error("❌ Ошибка загрузки обращения #%s", enquiry_id, exc_info=True)
        raise
    return EnquiryRowDTO.from_model(enquiry) if enquiry else None


def get_enquiries_by_company_id(company_id: int) -> list[EnquiryRowDTO]:
    return get_enquiries(EnquiryFilter(company_id=company_id), limit=None)


def get_enquiries_for_export(filters: EnquiryFilter | None = None) -> list[ExportRow]:
    """Строки выгрузки для обращений, удовлетворяющих фильтрам."""
    try:
        rows = get_enquiries(filters, limit=EXPORT_LIMIT, offset=0)
    except Exception:
        logger.error("❌ Ошибка подготовки данных для выгрузки", exc_info=True)
        raise
    return [ExportRow.from_row(row) for row in rows]


# ──────────────────────────── Изменение ─────────────────────────────


def add_enquiry(**data) -> Enquiry:
    """Создать обращение; статус по умолчанию ``new``."""
    clean = _clean_enquiry_data(data)
    errors = validate_form_data(clean, ENQUIRY_RULES)
    if not clean.get("company_id"):
        errors["company_id"] = "Please select a company"
    if errors:
        raise FormValidationError(errors)

    clean.setdefault("status", EnquiryStatus.NEW.value)
    clean.setdefault("enquiry_date", date.today())
    clean.setdefault("owner", get_settings().default_owner)
    try:
        with db.atomic():
            enquiry = Enquiry.create(**clean)
    except Exception:
        logger.error("❌ Ошибка при создании обращения", exc_info=True)
        raise
    logger.info("📥 Создано обращение #%s (статус %s)", enquiry.id, enquiry.status)
    return enquiry


def update_enquiry(enquiry_id: int, **updates) -> Enquiry:
    """Обновить только переданные поля обращения."""
    clean = _clean_enquiry_data(updates)
    rules = {k: v for k, v in ENQUIRY_RULES.items() if k in clean}
    errors = validate_form_data(clean, rules)
    if errors:
        raise FormValidationError(errors)
    clean["updated_at"] = datetime.now()
    try:
        with db.atomic():
            Enquiry.update(**clean).where(Enquiry.id == enquiry_id).execute()
            enquiry = Enquiry.get_by_id(enquiry_id)
    except Exception:
        logger.error("❌ Ошибка обновления обращения #%s", enquiry_id, exc_info=True)
        raise
    logger.info("✏️ Обновлено обращение #%s", enquiry_id)
    return enquiry


def change_status(enquiry_id: int, status: EnquiryStatus | str) -> Enquiry:
    """Сменить статус обращения, не затрагивая остальные поля."""
    return update_enquiry(enquiry_id, status=normalize_status(status))


def delete_enquiry(enquiry_id: int) -> None:
    try:
        with db.atomic():
            enquiry = Enquiry.get_or_none(Enquiry.id == enquiry_id)
            if enquiry is None:
                return
            enquiry.delete_instance(recursive=True)
    except Exception:
        logger.error("❌ Ошибка удаления обращения #%s", enquiry_id, exc_info=True)
        raise
    logger.info("🗑 Удалено обращение #%s", enquiry_id)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "EXPORT_LIMIT",
    "add_enquiry",
    "build_enquiry_query",
    "change_status",
    "delete_enquiry",
    "get_enquiries",
    "get_enquiries_by_company_id",
    "get_enquiries_for_export",
    "get_enquiry_by_id",
    "normalize_status",
    "update_enquiry",
]
