# returns/admin.py

from django.contrib import admin

from returns.models import StockReturn


@admin.register(StockReturn)
class StockReturnAdmin(admin.ModelAdmin):
    list_display = (
        "reference_no",
        "original_reference",
        "product",
        "location",
        "quantity",
        "status",
        "provenance_lost",
        "created_at",
    )
    list_filter = ("status", "provenance_lost", "location")
    search_fields = ("reference_no", "original_reference", "product__name")
    readonly_fields = ("approved_by", "approved_at", "rejected_by", "rejected_at", "rejection_reason")

    # Approval moves stock; it goes through the API, never the admin form.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
