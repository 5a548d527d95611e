"""Валидаторы пользовательского ввода форм."""

from __future__ import annotations

import re
from typing import Any, Mapping

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-\+\(\)]{10,}$")

# Правила форм: поле → {required, min_length, max_length}
COMPANY_RULES = {
    "name": {"required": True, "min_length": 2, "max_length": 100},
    "industry": {"required": True, "min_length": 2, "max_length": 50},
}
CONTACT_RULES = {
    "name": {"required": True, "min_length": 2, "max_length": 100},
    "designation": {"required": True, "min_length": 2, "max_length": 50},
}
ENQUIRY_RULES = {
    "product_interest": {"required": True, "min_length": 2, "max_length": 100},
    "notes": {"max_length": 1000},
}
REMINDER_RULES = {
    "title": {"required": True, "max_length": 255},
}
DRAFT_RULES = {
    "subject": {"required": True, "max_length": 255},
    "body": {"required": True},
}


class FormValidationError(ValueError):
    """Ошибка валидации формы с сообщениями по полям."""

    def __init__(self, errors: Mapping[str, str]):
        self.errors = dict(errors)
        super().__init__("\n".join(self.errors.values()))


def is_required(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def is_valid_length(value: str, min_length: int, max_length: int) -> bool:
    return min_length <= len(value) <= max_length


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(phone or ""))


def validate_form_data(
    data: Mapping[str, Any], rules: Mapping[str, Mapping[str, Any]]
) -> dict[str, str]:
    """Проверить данные формы и вернуть словарь «поле → сообщение».

    Пустой словарь означает, что данные корректны. Для каждого поля
    сохраняется последнее сработавшее правило.
    """
    errors: dict[str, str] = {}
    for field, field_rules in rules.items():
        value = data.get(field)

        if field_rules.get("required") and not is_required(value):
            errors[field] = f"{field} is required"

        if not value or not isinstance(value, str):
            continue

        min_length = field_rules.get("min_length")
        if min_length and len(value) < min_length:
            errors[field] = f"{field} must be at least {min_length} characters"

        max_length = field_rules.get("max_length")
        if max_length and len(value) > max_length:
            errors[field] = f"{field} must be at most {max_length} characters"
    return errors


def ensure_valid(
    data: Mapping[str, Any], rules: Mapping[str, Mapping[str, Any]]
) -> None:
    """Поднять :class:`FormValidationError`, если есть ошибки."""
    errors = validate_form_data(data, rules)
    if errors:
        raise FormValidationError(errors)


def validate_contact_channels(data: Mapping[str, Any]) -> dict[str, str]:
    """Проверка e-mail и телефона контакта, если они указаны."""
    errors: dict[str, str] = {}
    email = data.get("email")
    if email and not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"
    phone = data.get("phone")
    if phone and not is_valid_phone(phone):
        errors["phone"] = "Please enter a valid phone number"
    return errors
