"""Пакет прикладных сервисов.

Умышленно не выполняем массовые импорты подмодулей на уровне пакета,
чтобы избежать тяжёлых транзитивных зависимостей (OpenAI, pandas, psycopg2)
при простом ``import services`` или ``from services import X``.

Импортируйте нужные подмодули напрямую, например:
    from services import reminder_service as rs
    from services.enquiries import enquiry_app_service
    from services.ai_email_service import AIEmailService
"""

__all__: list[str] = []
