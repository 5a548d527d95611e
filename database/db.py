"""Единый peewee-``Proxy`` для всех моделей.

Конкретная база подключается в :func:`database.init.init_from_env`.
"""

from peewee import Proxy

db = Proxy()
