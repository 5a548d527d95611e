"""Подписки на изменения таблиц, приходящие от сервера БД."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from database.models import Enquiry

logger = logging.getLogger(__name__)

ENQUIRIES_TABLE = Enquiry._meta.table_name

ChangeCallback = Callable[["ChangeEvent"], Any]


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str  # INSERT / UPDATE / DELETE
    record: dict[str, Any] = field(default_factory=dict)
    old_record: dict[str, Any] = field(default_factory=dict)

    @property
    def record_id(self) -> Any:
        source = self.record or self.old_record
        return source.get("id")


class Subscription:
    """Подписка на события; читается через callback или как поток событий.

    ``for event in subscription`` блокируется до следующего события и
    завершается после :meth:`cancel`.
    """

    _STOP = object()

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        record_id: Any = None,
        callback: ChangeCallback | None = None,
    ) -> None:
        self._feed = feed
        self.table = table
        self.record_id = record_id
        self.callback = callback
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if self.record_id is None:
            return True
        return str(event.record_id) == str(self.record_id)

    def _push(self, event: ChangeEvent) -> None:
        if not self._active:
            return
        self._queue.put(event)
        if self.callback is not None:
            try:
                self.callback(event)
            except Exception:
                logger.exception("Ошибка обработчика изменений %s", self.table)

    def get(self, timeout: float | None = None) -> ChangeEvent | None:
        """Следующее событие или ``None`` по таймауту/после отмены."""
        if not self._active and self._queue.empty():
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if item is self._STOP else item

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)
        self._queue.put(self._STOP)

    def __iter__(self) -> Iterator[ChangeEvent]:
        while True:
            item = self._queue.get()
            if item is self._STOP:
                return
            yield item

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()


class ChangeFeed:
    """Потокобезопасный реестр подписок."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        table: str,
        record_id: Any = None,
        callback: ChangeCallback | None = None,
    ) -> Subscription:
        subscription = Subscription(self, table, record_id, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Подписка на %s (id=%s)", table, record_id)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> int:
        """Разослать событие подходящим подпискам; вернуть их число."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]
        for subscription in targets:
            subscription._push(event)
        return len(targets)

    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


def subscribe_to_enquiry_changes(
    feed: ChangeFeed, enquiry_id: int, callback: ChangeCallback | None = None
) -> Subscription:
    return feed.subscribe(ENQUIRIES_TABLE, record_id=enquiry_id, callback=callback)


def subscribe_to_all_enquiries(
    feed: ChangeFeed, callback: ChangeCallback | None = None
) -> Subscription:
    return feed.subscribe(ENQUIRIES_TABLE, callback=callback)


def unsubscribe(subscription: Subscription) -> None:
    subscription.cancel()


__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "Subscription",
    "subscribe_to_all_enquiries",
    "subscribe_to_enquiry_changes",
    "unsubscribe",
]
