"""Сервисный модуль для контактов компаний."""

import logging

from database.db import db
from database.models import Contact
from services.validators import (
    CONTACT_RULES,
    FormValidationError,
    validate_contact_channels,
    validate_form_data,
)

logger = logging.getLogger(__name__)

CONTACT_ALLOWED_FIELDS = {
    "company_id",
    "name",
    "designation",
    "phone",
    "email",
    "is_primary",
    "notes",
}


def _clean_contact_data(data: dict) -> dict:
    clean: dict = {}
    for key, value in data.items():
        if key in CONTACT_ALLOWED_FIELDS:
            clean[key] = value
        elif key == "company" and hasattr(value, "id"):
            clean["company_id"] = value.id
    return clean


def _validate(clean: dict, *, partial: bool = False) -> None:
    rules = CONTACT_RULES
    if partial:
        rules = {k: v for k, v in CONTACT_RULES.items() if k in clean}
    errors = validate_form_data(clean, rules)
    errors.update(validate_contact_channels(clean))
    if errors:
        raise FormValidationError(errors)


def get_contacts_by_company_id(company_id: int) -> list[Contact]:
    try:
        query = (
            Contact.select()
            .where(Contact.company == company_id)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
        )
        return list(query)
    except Exception:
        logger.error("❌ Ошибка загрузки контактов компании #%s", company_id, exc_info=True)
        raise


def get_contact_by_id(contact_id: int) -> Contact | None:
    try:
        return Contact.get_or_none(Contact.id == contact_id)
    except Exception:
        logger.error("❌ Ошибка загрузки контакта #%s", contact_id, exc_info=True)
        raise


def add_contact(**data) -> Contact:
    """Добавить контакт компании.

    Флаг ``is_primary`` не снимается с других контактов: несколько основных
    контактов у одной компании допустимы.
    """
    clean = _clean_contact_data(data)
    if not clean.get("company_id"):
        raise FormValidationError({"company_id": "Please select a company first"})
    _validate(clean)
    try:
        with db.atomic():
            contact = Contact.create(**clean)
    except Exception:
        logger.error("❌ Ошибка при создании контакта", exc_info=True)
        raise
    logger.info("👤 Добавлен контакт #%s для компании #%s", contact.id, contact.company_id)
    return contact


def update_contact(contact_id: int, **updates) -> Contact:
    clean = _clean_contact_data(updates)
    _validate(clean, partial=True)
    try:
        with db.atomic():
            contact = Contact.get_by_id(contact_id)
            for key, value in clean.items():
                setattr(contact, key, value)
            contact.save()
    except Exception:
        logger.error("❌ Ошибка обновления контакта #%s", contact_id, exc_info=True)
        raise
    return contact


def delete_contact(contact_id: int) -> None:
    """Удалить контакт; обращения остаются, ссылка на контакт обнуляется."""
    try:
        with db.atomic():
            contact = Contact.get_or_none(Contact.id == contact_id)
            if contact is None:
                return
            contact.delete_instance(recursive=True)
    except Exception:
        logger.error("❌ Ошибка удаления контакта #%s", contact_id, exc_info=True)
        raise
    logger.info("🗑 Удалён контакт #%s", contact_id)
