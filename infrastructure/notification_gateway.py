"""Локальные отложенные уведомления на базе APScheduler."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger(__name__)

Deliver = Callable[[str, str, dict[str, Any]], None]


def _log_delivery(title: str, body: str, data: dict[str, Any]) -> None:
    logger.info("🔔 %s: %s", title, body)


@dataclass
class ScheduledNotification:
    id: str
    title: str
    body: str
    fire_at: datetime
    data: dict[str, Any] = field(default_factory=dict)


class LocalNotificationGateway:
    """Планирует показ уведомлений на заданное время.

    Сам показ выполняет ``deliver(title, body, data)``; по умолчанию
    уведомление только пишется в лог.
    """

    def __init__(
        self,
        deliver: Deliver | None = None,
        *,
        scheduler: BackgroundScheduler | None = None,
        permission_check: Callable[[], bool] | None = None,
    ) -> None:
        self.deliver: Deliver = deliver or _log_delivery
        self._scheduler = scheduler or BackgroundScheduler()
        self._permission_check = permission_check
        self._pending: dict[str, ScheduledNotification] = {}
        self._lock = threading.Lock()

    def request_permissions(self) -> bool:
        if self._permission_check is None:
            return True
        return bool(self._permission_check())

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Планировщик уведомлений запущен")

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Планировщик уведомлений остановлен")

    def _fire(self, job_id: str) -> None:
        with self._lock:
            item = self._pending.pop(job_id, None)
        if item is None:
            return
        try:
            self.deliver(item.title, item.body, item.data)
        except Exception:
            logger.exception("Не удалось показать уведомление %s", job_id)

    def schedule(
        self, title: str, body: str, data: dict[str, Any], fire_at: datetime
    ) -> str:
        """Поставить уведомление и вернуть его идентификатор."""
        job_id = uuid.uuid4().hex
        item = ScheduledNotification(job_id, title, body, fire_at, dict(data or {}))
        with self._lock:
            self._pending[job_id] = item
        try:
            self._scheduler.add_job(
                self._fire,
                DateTrigger(run_date=fire_at),
                args=[job_id],
                id=job_id,
                name=title,
                replace_existing=True,
            )
        except Exception:
            with self._lock:
                self._pending.pop(job_id, None)
            raise
        return job_id

    def cancel(self, job_id: str) -> None:
        with self._lock:
            self._pending.pop(job_id, None)
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            # уже сработало
            pass

    def cancel_all(self) -> None:
        with self._lock:
            self._pending.clear()
        self._scheduler.remove_all_jobs()

    def get_scheduled(self) -> list[ScheduledNotification]:
        with self._lock:
            return sorted(self._pending.values(), key=lambda n: n.fire_at)


__all__ = ["LocalNotificationGateway", "ScheduledNotification"]
