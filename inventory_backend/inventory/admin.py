# inventory/admin.py

"""
Admin rules (audit-safe):

- Batches and movements are visible for support and audit, never editable.
- Stock only changes through the inventory services (receive / sell / adjust /
  transfer / return), which keep batches and the ledger in step.
"""

from django.contrib import admin

from inventory.models import Batch, StockMovement


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Batch)
class BatchAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "batch_reference",
        "product",
        "location",
        "available_quantity",
        "unit_cost",
        "selling_price",
        "expiration_date",
        "origin",
        "entry_date",
    )
    list_filter = ("origin", "location")
    search_fields = ("batch_reference", "product__name", "product__barcode")
    ordering = ("entry_date", "id")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "occurred_at",
        "movement_type",
        "product",
        "location",
        "batch",
        "quantity",
        "remaining_after",
        "reference_no",
    )
    list_filter = ("movement_type", "location")
    search_fields = ("reference_no", "product__name", "batch__batch_reference")
    ordering = ("-occurred_at", "-id")
