# products/admin.py
"""
Admin rules:

- Products and categories are reference data and freely editable here.
- Stock is never edited from the product page: batches are shown read-only and
  change only through the inventory services (receive / sell / adjust / transfer /
  return), which keep the movement ledger in step.
"""

from __future__ import annotations

from django.contrib import admin

from inventory.models import Batch
from products.models import Category, Product


class BatchInline(admin.TabularInline):
    model = Batch
    extra = 0
    can_delete = False
    fields = (
        "location",
        "batch_reference",
        "available_quantity",
        "unit_cost",
        "selling_price",
        "expiration_date",
        "origin",
        "entry_date",
    )
    readonly_fields = fields
    ordering = ("entry_date", "id")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "barcode", "category", "unit_price", "default_unit_cost", "total_stock", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("name", "barcode", "brand", "supplier")
    readonly_fields = ("created_at", "updated_at")
    inlines = [BatchInline]

    @admin.display(description="Stock")
    def total_stock(self, obj):
        return obj.total_stock


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)
