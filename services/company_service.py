"""Сервисный модуль для управления компаниями."""

import logging
from datetime import datetime

from peewee import ModelSelect, fn

from config import get_settings
from database.db import db
from database.models import Company, Contact
from services.validators import COMPANY_RULES, ensure_valid

logger = logging.getLogger(__name__)

COMPANY_ALLOWED_FIELDS = {"name", "industry", "address", "website", "notes", "owner"}


def _clean_company_data(data: dict) -> dict:
    return {k: v for k, v in data.items() if k in COMPANY_ALLOWED_FIELDS}


# ──────────────────────────── Получение ─────────────────────────────


def get_companies(limit: int = 20, offset: int = 0) -> list[Company]:
    """Страница компаний, новые сверху."""
    try:
        query = (
            Company.select()
            .order_by(Company.created_at.desc(), Company.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(query)
    except Exception:
        logger.error("❌ Ошибка загрузки компаний", exc_info=True)
        raise


def get_company_by_id(company_id: int) -> Company | None:
    try:
        return Company.get_or_none(Company.id == company_id)
    except Exception:
        logger.error("❌ Ошибка загрузки компании #%s", company_id, exc_info=True)
        raise


def search_companies(search_term: str, limit: int = 20) -> list[Company]:
    """Поиск компаний по подстроке в названии без учёта регистра."""
    query: ModelSelect = (
        Company.select()
        .where(fn.LOWER(Company.name).contains(search_term.strip().lower()))
        .order_by(Company.name.asc())
        .limit(limit)
    )
    try:
        return list(query)
    except Exception:
        logger.error("❌ Ошибка поиска компаний", exc_info=True)
        raise


def get_primary_contact(company_id: int) -> Contact | None:
    """Основной контакт компании: побеждает первый отмеченный."""
    return (
        Contact.select()
        .where((Contact.company == company_id) & (Contact.is_primary == True))
        .order_by(Contact.created_at.asc(), Contact.id.asc())
        .first()
    )


# ──────────────────────────── Изменение ─────────────────────────────


def add_company(**data) -> Company:
    """Создать компанию после проверки обязательных полей."""
    clean = _clean_company_data(data)
    ensure_valid(clean, COMPANY_RULES)
    clean.setdefault("owner", get_settings().default_owner)
    clean.setdefault("address", "")
    try:
        with db.atomic():
            company = Company.create(**clean)
    except Exception:
        logger.error("❌ Ошибка при создании компании", exc_info=True)
        raise
    logger.info("✅ Создана компания #%s: %s", company.id, company.name)
    return company


def update_company(company_id: int, **updates) -> Company:
    """Обновить только переданные поля компании."""
    clean = _clean_company_data(updates)
    if clean:
        rules = {k: v for k, v in COMPANY_RULES.items() if k in clean}
        ensure_valid(clean, rules)
    try:
        with db.atomic():
            company = Company.get_by_id(company_id)
            for key, value in clean.items():
                setattr(company, key, value)
            company.updated_at = datetime.now()
            company.save()
    except Exception:
        logger.error("❌ Ошибка обновления компании #%s", company_id, exc_info=True)
        raise
    logger.info("✏️ Обновлена компания #%s", company.id)
    return company


def delete_company(company_id: int) -> None:
    """Удалить компанию вместе с контактами и обращениями."""
    try:
        with db.atomic():
            company = Company.get_or_none(Company.id == company_id)
            if company is None:
                return
            company.delete_instance(recursive=True)
    except Exception:
        logger.error("❌ Ошибка удаления компании #%s", company_id, exc_info=True)
        raise
    logger.info("🗑 Удалена компания #%s", company_id)


__all__ = [
    "get_companies",
    "get_company_by_id",
    "search_companies",
    "get_primary_contact",
    "add_company",
    "update_company",
    "delete_company",
]
