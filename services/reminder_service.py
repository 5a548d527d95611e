"""CRUD-операции для напоминаний по обращениям."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable

from database.db import db
from database.models import Reminder
from services.validators import REMINDER_RULES, ensure_valid
from utils.text_utils import truncate
from utils.time_utils import format_date, relative_date_string

if TYPE_CHECKING:
    from services.notification_service import ReminderNotificationScheduler

logger = logging.getLogger(__name__)

REMINDER_ALLOWED_FIELDS = {"reminder_date", "title", "description", "is_completed"}

# поля, от которых зависит поставленное уведомление
_NOTIFICATION_FIELDS = {"reminder_date", "title", "is_completed"}

UPCOMING_TITLE_LENGTH = 40


def add_reminder(
    enquiry_id: int,
    reminder_date: datetime,
    title: str,
    description: str = "",
    *,
    scheduler: "ReminderNotificationScheduler | None" = None,
) -> Reminder:
    """Создать напоминание и, если передан планировщик, поставить уведомление."""
    ensure_valid({"title": title}, REMINDER_RULES)
    try:
        with db.atomic():
            reminder = Reminder.create(
                enquiry=enquiry_id,
                reminder_date=reminder_date,
                title=title.strip(),
                description=description or "",
                is_completed=False,
            )
    except Exception:
        logger.exception("❌ Ошибка при создании напоминания")
        raise
    logger.info("⏰ Напоминание #%s для обращения #%s", reminder.id, enquiry_id)
    if scheduler is not None:
        scheduler.schedule(reminder)
    return reminder


def get_reminders_by_enquiry_id(enquiry_id: int) -> list[Reminder]:
    try:
        query = (
            Reminder.select()
            .where(Reminder.enquiry == enquiry_id)
            .order_by(Reminder.reminder_date.asc())
        )
        return list(query)
    except Exception:
        logger.exception("❌ Ошибка загрузки напоминаний обращения #%s", enquiry_id)
        raise


def get_upcoming_reminders(days: int = 7, now: datetime | None = None) -> list[Reminder]:
    """Невыполненные напоминания на ближайшие ``days`` дней."""
    now = now or datetime.now()
    until = now + timedelta(days=days)
    try:
        query = (
            Reminder.select()
            .where(
                (Reminder.is_completed == False)
                & (Reminder.reminder_date >= now)
                & (Reminder.reminder_date <= until)
            )
            .order_by(Reminder.reminder_date.asc())
        )
        return list(query)
    except Exception:
        logger.exception("❌ Ошибка загрузки ближайших напоминаний")
        raise


def describe_upcoming(
    reminders: Iterable[Reminder], now: datetime | None = None
) -> list[str]:
    """Строки для меню трея: ``Call Acme: Tomorrow (Jun 02, 2026)``."""
    now = now or datetime.now()
    return [
        f"{truncate(r.title, UPCOMING_TITLE_LENGTH)}: "
        f"{relative_date_string(r.reminder_date, now)} ({format_date(r.reminder_date)})"
        for r in reminders
    ]


def update_reminder(
    reminder_id: int,
    *,
    scheduler: "ReminderNotificationScheduler | None" = None,
    **updates,
) -> Reminder:
    """Обновить напоминание; с планировщиком уведомление переставляется."""
    clean = {k: v for k, v in updates.items() if k in REMINDER_ALLOWED_FIELDS}
    if "title" in clean:
        ensure_valid(clean, REMINDER_RULES)
    try:
        with db.atomic():
            reminder = Reminder.get_by_id(reminder_id)
            for key, value in clean.items():
                setattr(reminder, key, value)
            reminder.save()
    except Exception:
        logger.exception("❌ Ошибка обновления напоминания #%s", reminder_id)
        raise

    if scheduler is not None and _NOTIFICATION_FIELDS & clean.keys():
        scheduler.cancel(reminder_id)
        if not reminder.is_completed:
            scheduler.schedule(reminder)
    return reminder


def complete_reminder(
    reminder_id: int, *, scheduler: "ReminderNotificationScheduler | None" = None
) -> Reminder:
    """Отметить напоминание выполненным и снять уведомление."""
    reminder = update_reminder(reminder_id, scheduler=scheduler, is_completed=True)
    logger.info("✅ Напоминание #%s выполнено", reminder_id)
    return reminder


def delete_reminder(
    reminder_id: int, *, scheduler: "ReminderNotificationScheduler | None" = None
) -> None:
    try:
        with db.atomic():
            Reminder.delete().where(Reminder.id == reminder_id).execute()
    except Exception:
        logger.exception("❌ Ошибка удаления напоминания #%s", reminder_id)
        raise
    if scheduler is not None:
        scheduler.cancel(reminder_id)
    logger.info("🗑 Удалено напоминание #%s", reminder_id)
