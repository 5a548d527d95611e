"""Показ уведомлений через значок в системном трее."""

from __future__ import annotations

import logging
from typing import Any, Callable

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtWidgets import QSystemTrayIcon

logger = logging.getLogger(__name__)


class TrayNotifier(QObject):
    """Доставка уведомлений в GUI-поток и обработка кликов по ним.

    ``deliver`` можно вызывать из любого потока: сигнал с очередью
    переносит показ в поток, которому принадлежит объект.
    """

    notify_requested = Signal(str, str, object)

    def __init__(
        self,
        tray: QSystemTrayIcon,
        on_click: Callable[[dict[str, Any]], Any] | None = None,
        *,
        timeout_ms: int = 10000,
    ) -> None:
        super().__init__()
        self._tray = tray
        self._on_click = on_click
        self._timeout_ms = timeout_ms
        self.last_payload: dict[str, Any] | None = None
        self.notify_requested.connect(self._show, Qt.ConnectionType.QueuedConnection)
        self._tray.messageClicked.connect(self._handle_click)

    def deliver(self, title: str, body: str, data: dict[str, Any]) -> None:
        self.notify_requested.emit(title, body, dict(data or {}))

    def _show(self, title: str, body: str, data: dict[str, Any]) -> None:
        self.last_payload = data
        if not QSystemTrayIcon.supportsMessages():
            logger.info("🔔 %s: %s", title, body)
            return
        self._tray.showMessage(
            title, body, QSystemTrayIcon.MessageIcon.Information, self._timeout_ms
        )

    def _handle_click(self) -> None:
        if self._on_click is None or self.last_payload is None:
            return
        try:
            self._on_click(self.last_payload)
        except Exception:
            logger.exception("Ошибка обработки клика по уведомлению")


__all__ = ["TrayNotifier"]
