from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from appdirs import user_data_dir, user_log_dir
from dotenv import load_dotenv

APP_NAME = "enquiry_manager"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(RuntimeError):
    """Не заданы обязательные параметры внешних сервисов."""


def _default_export_dir() -> str:
    return str(Path(user_data_dir(APP_NAME)) / "exports")


@dataclass
class Settings:
    database_url: str = ""
    log_dir: str = field(default_factory=lambda: user_log_dir(APP_NAME))
    log_level: str = "INFO"
    detailed_logging: bool = False
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"
    export_dir: str = field(default_factory=_default_export_dir)
    realtime_enabled: bool = True
    realtime_channel: str = "crm_changes"
    reminder_sync_days: int = 30
    default_owner: str = "current_user"
    # Таймауты (сек.) хранятся как справочные данные и не передаются в вызовы.
    api_timeouts: dict[str, int] = field(
        default_factory=lambda: {"default": 10, "upload": 30, "long_operation": 60}
    )

    def require_database(self) -> str:
        if not self.database_url:
            raise ConfigurationError(
                "DATABASE_URL is not configured. Please set it in your .env file."
            )
        return self.database_url

    def require_openai(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationError(
                "OpenAI API key is not configured. "
                "Please set OPENAI_API_KEY in your .env file."
            )
        return self.openai_api_key


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@lru_cache()
def get_settings() -> Settings:
    dotenv_path = Path(__file__).resolve().parent / ".env"
    load_dotenv(dotenv_path)

    return Settings(
        database_url=os.getenv("DATABASE_URL", ""),
        log_dir=os.getenv("LOG_DIR") or user_log_dir(APP_NAME),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        detailed_logging=_env_flag("DETAILED_LOGGING", False),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_base_url=os.getenv("OPENAI_BASE_URL"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        export_dir=os.getenv("EXPORT_DIR") or _default_export_dir(),
        realtime_enabled=_env_flag("REALTIME_ENABLED", True),
        realtime_channel=os.getenv("REALTIME_CHANNEL", "crm_changes"),
        reminder_sync_days=int(os.getenv("REMINDER_SYNC_DAYS", "30")),
        default_owner=os.getenv("DEFAULT_OWNER", "current_user"),
    )
