from types import SimpleNamespace

import pytest

from config import Settings
from core.app_context import AppContext, _build_realtime_listener
from infrastructure.notification_gateway import LocalNotificationGateway
from infrastructure.realtime_gateway import PostgresChangeListener
from services.ai_email_service import AIEmailService
from services.notification_service import ReminderNotificationScheduler
from services.realtime_service import ChangeFeed


def _context(settings=None, **overrides):
    settings = settings or Settings(database_url="sqlite:///:memory:")
    return AppContext(
        settings=settings,
        notification_gateway_factory=lambda s: LocalNotificationGateway(),
        share_gateway_factory=lambda s: SimpleNamespace(kind="share"),
        notification_scheduler_factory=lambda ctx: ReminderNotificationScheduler(
            ctx.notification_gateway, lambda d, n: [], horizon_days=ctx.settings.reminder_sync_days
        ),
        ai_email_service_factory=AIEmailService,
        change_feed_factory=ChangeFeed,
        realtime_listener_factory=_build_realtime_listener,
        overrides=overrides or None,
    )


def test_dependencies_are_lazy_singletons():
    ctx = _context()

    assert ctx.notification_scheduler is ctx.notification_scheduler
    assert ctx.notification_scheduler.gateway is ctx.notification_gateway
    assert ctx.change_feed is ctx.change_feed
    assert isinstance(ctx.ai_email_service, AIEmailService)
    assert ctx.share_gateway.kind == "share"


def test_override_replaces_dependency_and_keeps_others(fake_gateway):
    ctx = _context()
    feed = ctx.change_feed

    overridden = ctx.override(notification_gateway=fake_gateway)

    assert overridden.notification_gateway is fake_gateway
    assert overridden.notification_scheduler.gateway is fake_gateway
    assert overridden.change_feed is feed


def test_override_settings_resets_instances():
    ctx = _context()
    feed = ctx.change_feed

    fresh = ctx.override(settings=Settings(reminder_sync_days=5))

    assert fresh.change_feed is not feed
    assert fresh.notification_scheduler.horizon_days == 5


def test_override_unknown_dependency():
    with pytest.raises(ValueError):
        _context().override(drive_gateway=object())


def test_realtime_listener_only_for_postgres():
    assert _context().realtime_listener is None

    pg = _context(Settings(database_url="postgres://u:p@localhost/crm", realtime_channel="chan"))
    listener = pg.realtime_listener
    assert isinstance(listener, PostgresChangeListener)
    assert listener.channel == "chan"
    assert listener.feed is pg.change_feed
    assert listener.running is False

    disabled = _context(
        Settings(database_url="postgres://u:p@localhost/crm", realtime_enabled=False)
    )
    assert disabled.realtime_listener is None
