# backend/settings/__init__.py
"""
Settings modules for the inventory ledger, selected with DJANGO_SETTINGS_MODULE:

- backend.settings.dev    local work (default for manage.py and wsgi/asgi)
- backend.settings.test   test runs (in-memory SQLite unless DATABASE_URL is set)
- backend.settings.prod   production (PostgreSQL, fail-closed checks)

Nothing is imported here so that selecting one module never loads another.
"""
