#!/usr/bin/env python
"""
Command-line entrypoint for the inventory ledger project.

`manage.py test` runs against backend.settings.test; every other command defaults
to backend.settings.dev. An explicit DJANGO_SETTINGS_MODULE always wins, except the
bare package name "backend.settings", which has no INSTALLED_APPS of its own.
"""

from __future__ import annotations

import os
import sys

SETTINGS_PACKAGE = "backend.settings"


def default_settings_module(argv: list[str]) -> str:
    if argv[1:2] == ["test"]:
        return f"{SETTINGS_PACKAGE}.test"
    return f"{SETTINGS_PACKAGE}.dev"


def main() -> None:
    configured = (os.environ.get("DJANGO_SETTINGS_MODULE") or "").strip()
    if configured in ("", SETTINGS_PACKAGE):
        os.environ["DJANGO_SETTINGS_MODULE"] = default_settings_module(sys.argv)

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Django is not importable. Install the project (pip install -e .) "
            "inside the active virtual environment."
        ) from exc

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
