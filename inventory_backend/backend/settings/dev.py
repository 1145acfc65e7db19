# backend/settings/dev.py
"""
Local development: SQLite by default, DEBUG on, verbose inventory loggers.

SQLite ignores SELECT ... FOR UPDATE; point DATABASE_URL at Postgres to see
real lock contention between concurrent allocations.
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, env

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "0.0.0.0"])

if env.bool("LOG_SQL", default=False):
    LOGGING["loggers"]["django.db.backends"] = {"handlers": ["console"], "level": "DEBUG", "propagate": False}
