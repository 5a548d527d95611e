"""Create database tables and realtime triggers if they don't exist."""

from config import get_settings

from .db import db
from .init import create_tables, init_from_env, install_change_triggers


def main() -> None:
    settings = get_settings()
    init_from_env(settings.require_database())
    db.connect(reuse_if_open=True)
    create_tables()
    if settings.realtime_enabled:
        install_change_triggers(settings.realtime_channel)
    db.close()


if __name__ == "__main__":
    main()
