"""Простейший контейнер зависимостей для сервисов."""

from __future__ import annotations

from functools import lru_cache

from infrastructure.share_gateway import ShareGateway


@lru_cache()
def get_share_gateway() -> ShareGateway:
    """Получить синглтон-экземпляр системного «поделиться»."""

    return ShareGateway()


__all__ = ["get_share_gateway"]
