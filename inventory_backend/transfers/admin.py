# transfers/admin.py

from django.contrib import admin

from transfers.models import TransferAllocation, TransferDetail, TransferHeader


class TransferDetailInline(admin.TabularInline):
    model = TransferDetail
    extra = 0
    can_delete = False
    readonly_fields = ("line_no", "product", "quantity", "status", "failure_reason")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(TransferHeader)
class TransferHeaderAdmin(admin.ModelAdmin):
    """
    Transfers are created and executed through the transfer services only;
    the admin is a read-only view of headers and their lines.
    """

    list_display = (
        "reference_no",
        "source_location",
        "destination_location",
        "status",
        "created_at",
        "completed_at",
    )
    list_filter = ("status", "source_location", "destination_location")
    search_fields = ("reference_no",)
    readonly_fields = (
        "reference_no",
        "source_location",
        "destination_location",
        "status",
        "requested_by",
        "created_at",
        "approved_at",
        "completed_at",
        "last_error",
    )
    inlines = [TransferDetailInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(TransferAllocation)
class TransferAllocationAdmin(admin.ModelAdmin):
    list_display = ("detail", "source_batch", "destination_batch", "quantity", "unit_cost", "expiration_date")
    search_fields = ("detail__header__reference_no", "source_batch__batch_reference")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
