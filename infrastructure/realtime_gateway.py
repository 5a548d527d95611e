"""Приём уведомлений PostgreSQL ``LISTEN/NOTIFY`` в фоновом потоке."""

from __future__ import annotations

import json
import logging
import select
import threading
from typing import Any

import psycopg2
import psycopg2.extensions

from services.realtime_service import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0


def parse_notification(payload: str) -> ChangeEvent | None:
    """Разобрать JSON из триггера ``crm_notify_change``."""
    try:
        data: dict[str, Any] = json.loads(payload)
        return ChangeEvent(
            table=data["table"],
            event_type=str(data["type"]).upper(),
            record=data.get("record") or {},
            old_record=data.get("old_record") or {},
        )
    except (ValueError, KeyError, TypeError):
        logger.warning("Некорректное уведомление: %.200s", payload)
        return None


class PostgresChangeListener:
    """Слушает канал и публикует изменения в :class:`ChangeFeed`."""

    def __init__(self, dsn: str, channel: str, feed: ChangeFeed) -> None:
        self.dsn = dsn
        self.channel = channel
        self.feed = feed
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._conn = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._conn = psycopg2.connect(self.dsn)
        self._conn.set_isolation_level(psycopg2.extensions.ISOLATION_LEVEL_AUTOCOMMIT)
        with self._conn.cursor() as cur:
            cur.execute(f'LISTEN "{self.channel}";')
        self._thread = threading.Thread(
            target=self._run, name="realtime-listener", daemon=True
        )
        self._thread.start()
        logger.info("📡 Подписка на канал %s", self.channel)

    def _run(self) -> None:
        conn = self._conn
        try:
            while not self._stop.is_set():
                if select.select([conn], [], [], POLL_INTERVAL) == ([], [], []):
                    continue
                conn.poll()
                while conn.notifies:
                    notify = conn.notifies.pop(0)
                    event = parse_notification(notify.payload)
                    if event is not None:
                        self.feed.publish(event)
        except Exception:
            if not self._stop.is_set():
                logger.exception("Соединение realtime-канала потеряно")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=POLL_INTERVAL * 2)
            self._thread = None
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        logger.info("Подписка на канал %s остановлена", self.channel)


__all__ = ["PostgresChangeListener", "parse_notification"]
