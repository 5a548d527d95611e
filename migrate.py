#!/usr/bin/env python3
"""Миграция базы данных: таблицы CRM и realtime-триггеры."""

from config import get_settings
from database.migrate import main
from utils.logging_config import setup_logging


if __name__ == "__main__":
    setup_logging(get_settings())
    main()
