import logging
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication, QMenu, QMessageBox, QStyle, QSystemTrayIcon

from config import ConfigurationError, Settings, get_settings
from core.app_context import AppContext, get_app_context
from database.init import init_from_env
from infrastructure.tray_notifier import TrayNotifier
from services.notification_service import ReminderNotificationScheduler
from services.reminder_service import describe_upcoming, get_upcoming_reminders
from utils.logging_config import setup_logging

__all__ = ["main"]

logger = logging.getLogger(__name__)

APP_TITLE = "Enquiry Manager"
UPCOMING_MENU_DAYS = 7


def _create_tray(app: QApplication) -> tuple[QSystemTrayIcon, QMenu]:
    icon = app.style().standardIcon(QStyle.StandardPixmap.SP_MessageBoxInformation)
    tray = QSystemTrayIcon(icon, app)
    tray.setToolTip(APP_TITLE)
    menu = QMenu()
    menu.addAction("Выход").triggered.connect(app.quit)
    tray.setContextMenu(menu)
    tray.show()
    return tray, menu


def _fill_tray_menu(
    app: QApplication,
    tray: QSystemTrayIcon,
    menu: QMenu,
    scheduler: ReminderNotificationScheduler,
) -> None:
    """Пересобрать меню трея: ближайшие напоминания, синхронизация, выход."""
    try:
        lines = describe_upcoming(get_upcoming_reminders(days=UPCOMING_MENU_DAYS))
    except Exception:
        logger.exception("Не удалось загрузить ближайшие напоминания")
        lines = []

    menu.clear()
    for line in lines or ["Нет ближайших напоминаний"]:
        menu.addAction(line).setEnabled(False)
    menu.addSeparator()

    def _sync() -> None:
        scheduler.sync_reminders()
        # меню пересобирается после выхода из обработчика его же действия
        QTimer.singleShot(0, lambda: _fill_tray_menu(app, tray, menu, scheduler))

    menu.addAction("Синхронизировать напоминания").triggered.connect(_sync)
    menu.addAction("Выход").triggered.connect(app.quit)
    tray.setToolTip(f"{APP_TITLE}: {len(lines)} upcoming follow-ups")


def _start_services(
    app: QApplication, context: AppContext, tray: QSystemTrayIcon, menu: QMenu
) -> TrayNotifier:
    scheduler = context.notification_scheduler
    notifier = TrayNotifier(tray, on_click=scheduler.handle_notification_response)
    context.notification_gateway.deliver = notifier.deliver
    scheduler.initialize()
    _fill_tray_menu(app, tray, menu, scheduler)

    listener = context.realtime_listener
    if listener is not None:
        listener.start()
    return notifier


def _shutdown(context: AppContext) -> None:
    listener = context.realtime_listener
    if listener is not None:
        listener.stop()
    context.notification_gateway.shutdown()


def main(settings: Settings | None = None) -> int:
    """Запускает фоновое приложение обращений со значком в трее."""

    settings = settings or get_settings()
    log_path = setup_logging(settings)

    # ───── GUI ─────
    app = QApplication.instance() or QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)

    try:
        init_from_env(settings.require_database())
        tray, menu = _create_tray(app)
        context = get_app_context()
        notifier = _start_services(app, context, tray, menu)
    except ConfigurationError as exc:
        logger.error("❌ Ошибка конфигурации: %s", exc)
        QMessageBox.critical(None, "Configuration error", str(exc))
        return 1
    except Exception as exc:
        logger.exception("Не удалось запустить приложение")
        QMessageBox.critical(None, "Initialization failed", str(exc))
        return 1

    logger.info("🚀 Приложение запущено, лог: %s", log_path)
    try:
        return app.exec()
    finally:
        notifier.deleteLater()
        _shutdown(context)


if __name__ == "__main__":
    raise SystemExit(main())
