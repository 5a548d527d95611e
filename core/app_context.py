"""Контекст приложения и управление зависимостями."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from config import Settings, get_settings
from infrastructure.notification_gateway import LocalNotificationGateway
from infrastructure.realtime_gateway import PostgresChangeListener
from infrastructure.share_gateway import ShareGateway
from services.ai_email_service import AIEmailService
from services.notification_service import ReminderNotificationScheduler
from services.realtime_service import ChangeFeed

DependencyName = str


class AppContext:
    """Контекст приложения с ленивым созданием зависимостей."""

    _DEPENDENCY_NAMES: ClassVar[set[str]] = {
        "notification_gateway",
        "share_gateway",
        "notification_scheduler",
        "ai_email_service",
        "change_feed",
        "realtime_listener",
    }

    def __init__(
        self,
        settings: Settings,
        *,
        notification_gateway_factory: Callable[[Settings], LocalNotificationGateway],
        share_gateway_factory: Callable[[Settings], ShareGateway],
        notification_scheduler_factory: Callable[
            ["AppContext"], ReminderNotificationScheduler
        ],
        ai_email_service_factory: Callable[[Settings], AIEmailService],
        change_feed_factory: Callable[[], ChangeFeed],
        realtime_listener_factory: Callable[
            ["AppContext"], PostgresChangeListener | None
        ],
        overrides: dict[str, Any] | None = None,
        instances: dict[str, Any] | None = None,
    ) -> None:
        self._settings = settings
        self._notification_gateway_factory = notification_gateway_factory
        self._share_gateway_factory = share_gateway_factory
        self._notification_scheduler_factory = notification_scheduler_factory
        self._ai_email_service_factory = ai_email_service_factory
        self._change_feed_factory = change_feed_factory
        self._realtime_listener_factory = realtime_listener_factory
        self._overrides: dict[str, Any] = dict(overrides or {})
        self._instances: dict[str, Any] = dict(instances or {})

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def notification_gateway(self) -> LocalNotificationGateway:
        return self._get_dependency(
            "notification_gateway",
            lambda: self._notification_gateway_factory(self._settings),
        )

    @property
    def share_gateway(self) -> ShareGateway:
        return self._get_dependency(
            "share_gateway",
            lambda: self._share_gateway_factory(self._settings),
        )

    @property
    def notification_scheduler(self) -> ReminderNotificationScheduler:
        return self._get_dependency(
            "notification_scheduler",
            lambda: self._notification_scheduler_factory(self),
        )

    @property
    def ai_email_service(self) -> AIEmailService:
        return self._get_dependency(
            "ai_email_service",
            lambda: self._ai_email_service_factory(self._settings),
        )

    @property
    def change_feed(self) -> ChangeFeed:
        return self._get_dependency("change_feed", self._change_feed_factory)

    @property
    def realtime_listener(self) -> PostgresChangeListener | None:
        """Слушатель изменений; ``None``, если realtime недоступен."""
        return self._get_dependency(
            "realtime_listener",
            lambda: self._realtime_listener_factory(self),
        )

    def override(self, **deps: Any) -> "AppContext":
        """Создать новый контекст с переопределёнными зависимостями."""

        override_args = dict(deps)
        new_settings = override_args.pop("settings", self._settings)

        unknown = set(override_args) - self._DEPENDENCY_NAMES
        if unknown:
            names = ", ".join(sorted(unknown))
            raise ValueError(f"Неизвестные зависимости для переопределения: {names}")

        overrides = dict(self._overrides)
        overrides.update(override_args)
        if new_settings is self._settings:
            instances = {
                key: value
                for key, value in self._instances.items()
                if key not in override_args
            }
        else:
            instances = {}
        return AppContext(
            settings=new_settings,
            notification_gateway_factory=self._notification_gateway_factory,
            share_gateway_factory=self._share_gateway_factory,
            notification_scheduler_factory=self._notification_scheduler_factory,
            ai_email_service_factory=self._ai_email_service_factory,
            change_feed_factory=self._change_feed_factory,
            realtime_listener_factory=self._realtime_listener_factory,
            overrides=overrides,
            instances=instances,
        )

    def _get_dependency(
        self, name: DependencyName, factory: Callable[[], Any]
    ) -> Any:
        if name in self._overrides:
            return self._overrides[name]
        if name not in self._instances:
            self._instances[name] = factory()
        return self._instances[name]


_app_context: AppContext | None = None


def _build_realtime_listener(context: AppContext) -> PostgresChangeListener | None:
    settings = context.settings
    url = settings.database_url
    if not settings.realtime_enabled or not url.startswith("postgres"):
        return None
    return PostgresChangeListener(url, settings.realtime_channel, context.change_feed)


def _build_default_context() -> AppContext:
    settings = get_settings()
    return AppContext(
        settings=settings,
        notification_gateway_factory=lambda _settings: LocalNotificationGateway(),
        share_gateway_factory=lambda _settings: ShareGateway(),
        notification_scheduler_factory=lambda context: ReminderNotificationScheduler(
            context.notification_gateway,
            horizon_days=context.settings.reminder_sync_days,
        ),
        ai_email_service_factory=AIEmailService,
        change_feed_factory=ChangeFeed,
        realtime_listener_factory=_build_realtime_listener,
    )


def get_app_context() -> AppContext:
    """Получить (или создать) синглтон контекста приложения."""

    global _app_context
    if _app_context is None:
        _app_context = _build_default_context()
    return _app_context


__all__ = ["AppContext", "get_app_context"]
