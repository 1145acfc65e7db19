# inventory/apps.py

"""
INVENTORY APP CONFIG

Owns the batch store, the allocator and the append-only stock movement ledger.
Transfers and returns build on these services from their own apps.
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory Ledger"
