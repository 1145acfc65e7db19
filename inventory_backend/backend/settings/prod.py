# backend/settings/prod.py
"""
Production settings for the inventory ledger.

Fails closed at import time when:
- SECRET_KEY is missing or still the development placeholder
- ALLOWED_HOSTS is empty
- DATABASE_URL is not PostgreSQL (allocation needs real row locks)
- INVENTORY_ALLOCATION_STRATEGY is not FIFO or FEFO
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, INVENTORY_ALLOCATION_STRATEGY, env

DEBUG = False

SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
if not SECRET_KEY or SECRET_KEY == "dev-insecure-change-me":
    raise ImproperlyConfigured("SECRET_KEY must be set for the production ledger.")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
if not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set for the production ledger.")

# -----------------------------------------
# DATABASE (PostgreSQL only)
# -----------------------------------------
_db_url = (env("DATABASE_URL", default="") or "").strip()
if not _db_url.startswith(("postgres://", "postgresql://", "pgsql://")):
    raise ImproperlyConfigured(
        "DATABASE_URL must point at PostgreSQL: batch allocation depends on SELECT ... FOR UPDATE."
    )

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)
DATABASES["default"].setdefault("OPTIONS", {})
DATABASES["default"]["OPTIONS"].setdefault("connect_timeout", env.int("DB_CONNECT_TIMEOUT", default=5))

if INVENTORY_ALLOCATION_STRATEGY not in ("FIFO", "FEFO"):
    raise ImproperlyConfigured(
        f"INVENTORY_ALLOCATION_STRATEGY must be FIFO or FEFO, got {INVENTORY_ALLOCATION_STRATEGY!r}."
    )

# -----------------------------------------
# HTTPS BEHIND A PROXY
# -----------------------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)

SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = CSRF_COOKIE_SAMESITE = "Lax"

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"
