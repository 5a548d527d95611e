"""Планирование локальных уведомлений по напоминаниям."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Protocol

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Follow-up Reminder"
DETAIL_SCREEN = "EnquiryDetail"
IMMEDIATE_DELAY_SECONDS = 1


@dataclass
class NotificationPayload:
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)


class NotificationGateway(Protocol):
    def request_permissions(self) -> bool: ...

    def start(self) -> None: ...

    def schedule(
        self, title: str, body: str, data: dict[str, Any], fire_at: datetime
    ) -> str: ...

    def cancel(self, job_id: str) -> None: ...

    def cancel_all(self) -> None: ...

    def get_scheduled(self) -> list: ...


ReminderSource = Callable[[int, datetime], Iterable[Any]]


def _upcoming_reminders(days: int, now: datetime) -> list:
    from services.reminder_service import get_upcoming_reminders

    return get_upcoming_reminders(days=days, now=now)


class ReminderNotificationScheduler:
    """Связывает напоминания с отложенными уведомлениями.

    Соответствие «напоминание → уведомление» живёт только в памяти
    процесса; после перезапуска его восстанавливает :meth:`sync_reminders`.
    Ошибки шлюза и данных записываются в лог и не пробрасываются.
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        reminder_source: ReminderSource | None = None,
        *,
        horizon_days: int = 30,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.gateway = gateway
        self.reminder_source = reminder_source or _upcoming_reminders
        self.horizon_days = horizon_days
        self.clock = clock
        self.scheduled: dict[int, str] = {}

    def initialize(self) -> bool:
        """Запросить разрешение, запустить шлюз и синхронизировать напоминания."""
        try:
            if not self.request_permissions():
                logger.warning("⚠️ Нет разрешения на уведомления")
                return False
            self.gateway.start()
            self.sync_reminders()
            return True
        except Exception:
            logger.exception("Ошибка инициализации уведомлений")
            return False

    def request_permissions(self) -> bool:
        try:
            return bool(self.gateway.request_permissions())
        except Exception:
            logger.exception("Ошибка запроса разрешения на уведомления")
            return False

    def schedule_notification(
        self, payload: NotificationPayload, fire_at: datetime
    ) -> str | None:
        try:
            return self.gateway.schedule(
                payload.title, payload.body, dict(payload.data), fire_at
            )
        except Exception:
            logger.exception("Ошибка планирования уведомления «%s»", payload.title)
            return None

    def schedule_local_notification(
        self, payload: NotificationPayload, delay_seconds: float
    ) -> str | None:
        fire_at = self.clock() + timedelta(seconds=delay_seconds)
        return self.schedule_notification(payload, fire_at)

    def schedule(self, reminder: Any) -> str | None:
        """Поставить уведомление для напоминания; прошедшие пропускаются."""
        try:
            fire_at = reminder.reminder_date
            if fire_at <= self.clock():
                logger.warning(
                    "⚠️ Напоминание #%s в прошлом, уведомление не ставится",
                    reminder.id,
                )
                return None
            payload = NotificationPayload(
                title=REMINDER_TITLE,
                body=reminder.title,
                data={
                    "reminder_id": reminder.id,
                    "enquiry_id": reminder.enquiry_id,
                    "screen": DETAIL_SCREEN,
                },
            )
        except Exception:
            logger.exception("Ошибка подготовки уведомления для напоминания")
            return None

        handle = self.schedule_notification(payload, fire_at)
        if handle is not None:
            previous = self.scheduled.pop(reminder.id, None)
            if previous is not None:
                self._cancel_handle(previous)
            self.scheduled[reminder.id] = handle
            logger.info("🔔 Уведомление по напоминанию #%s на %s", reminder.id, fire_at)
        return handle

    def _cancel_handle(self, handle: str) -> None:
        try:
            self.gateway.cancel(handle)
        except Exception:
            logger.exception("Ошибка отмены уведомления %s", handle)

    def cancel(self, reminder_id: int) -> None:
        handle = self.scheduled.pop(reminder_id, None)
        if handle is not None:
            self._cancel_handle(handle)

    def cancel_all(self) -> None:
        try:
            self.gateway.cancel_all()
        except Exception:
            logger.exception("Ошибка отмены всех уведомлений")
        self.scheduled.clear()

    def sync_reminders(self) -> int:
        """Перепланировать уведомления для ближайших напоминаний.

        Returns:
            Количество поставленных уведомлений.
        """
        try:
            reminders = list(self.reminder_source(self.horizon_days, self.clock()))
        except Exception:
            logger.exception("Ошибка загрузки напоминаний для синхронизации")
            return 0

        self.cancel_all()
        count = 0
        for reminder in reminders:
            if getattr(reminder, "is_completed", False):
                continue
            if self.schedule(reminder) is not None:
                count += 1
        logger.info("Синхронизировано напоминаний: %d из %d", count, len(reminders))
        return count

    def send_immediate(self, payload: NotificationPayload) -> str | None:
        return self.schedule_local_notification(payload, IMMEDIATE_DELAY_SECONDS)

    def handle_notification_response(self, data: dict[str, Any] | None) -> int | None:
        """Обработать нажатие на уведомление; вернуть id обращения для перехода."""
        data = data or {}
        enquiry_id = data.get("enquiry_id")
        if enquiry_id is not None:
            logger.info("Нажато уведомление по обращению #%s", enquiry_id)
        reminder_id = data.get("reminder_id")
        if reminder_id is not None:
            # напоминание остаётся невыполненным до явного действия пользователя
            logger.info("Уведомление по напоминанию #%s обработано", reminder_id)
        return enquiry_id

    def get_scheduled(self) -> list:
        try:
            return list(self.gateway.get_scheduled())
        except Exception:
            logger.exception("Ошибка получения списка уведомлений")
            return []


__all__ = [
    "NotificationPayload",
    "ReminderNotificationScheduler",
]
