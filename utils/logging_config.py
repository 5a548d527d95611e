"""Логирование фонового приложения обращений: консоль и ротируемый файл."""

import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

from config import Settings, get_settings

LOG_FILE_NAME = "enquiry_manager.log"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s │ %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 2_000_000
LOG_BACKUPS = 3

# Планировщик и HTTP-клиент OpenAI пишут каждый запуск задачи и запрос на INFO
NOISY_LOGGERS = ("apscheduler", "httpx", "openai")


class PeeweeFilter(logging.Filter):
    """Фильтрует SELECT-запросы peewee."""

    def filter(self, record: logging.LogRecord) -> bool:
        sql = getattr(record, "sql", None)
        if sql is None:
            # peewee пишет запрос кортежем (sql, params)
            if isinstance(record.msg, tuple) and record.msg:
                sql = record.msg[0]
            else:
                sql = record.getMessage()
        return not str(sql).lstrip().upper().startswith("SELECT")


def _resolve_level(settings: Settings) -> int:
    if settings.detailed_logging:
        return logging.DEBUG
    return getattr(logging, settings.log_level.upper(), logging.INFO)


def _install_peewee_filter(enabled: bool) -> None:
    peewee_logger = logging.getLogger("peewee")
    for existing in [f for f in peewee_logger.filters if isinstance(f, PeeweeFilter)]:
        peewee_logger.removeFilter(existing)
    if enabled:
        peewee_logger.addFilter(PeeweeFilter())


def setup_logging(settings: Settings | None = None) -> Path:
    """Настраивает вывод логов и возвращает путь к файлу лога.

    Повторный вызов заменяет обработчики, а не добавляет новые.
    """
    settings = settings or get_settings()
    logs_dir = Path(settings.log_dir).expanduser()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / LOG_FILE_NAME

    level = _resolve_level(settings)
    fmt = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_h = RotatingFileHandler(
        log_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    console_h = logging.StreamHandler()
    for handler in (file_h, console_h):
        handler.setFormatter(fmt)
        handler.setLevel(level)

    logging.basicConfig(level=level, handlers=[file_h, console_h], force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _install_peewee_filter(not settings.detailed_logging)
    return log_path
