# transfers/models/transfer.py

"""
STOCK TRANSFERS (LOCATION TO LOCATION)

TransferHeader   one document moving stock from a source to a destination location
TransferDetail   one product line of that document
TransferAllocation
                 one source batch consumed by a line, and the destination batch that
                 received its units (provenance trail)

Lifecycle: pending -> approved -> completed. Execution may also run straight from
pending. A failed all-or-nothing execution leaves the header pending.
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from inventory.models import Batch
from locations.models import Location
from products.models import Product


class TransferHeader(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        COMPLETED = "completed", "Completed"

    EXECUTABLE_STATUSES = (Status.PENDING, Status.APPROVED)

    reference_no = models.CharField(max_length=64, unique=True)

    source_location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="outgoing_transfers",
    )
    destination_location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="incoming_transfers",
    )

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requested_transfers",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    last_error = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(source_location=models.F("destination_location")),
                name="chk_transfer_distinct_locations",
            ),
        ]

    def clean(self):
        if self.source_location_id and self.source_location_id == self.destination_location_id:
            raise ValidationError("Source and destination locations must differ")

    @property
    def is_executable(self) -> bool:
        return self.status in self.EXECUTABLE_STATUSES

    def __str__(self):
        return f"{self.reference_no} ({self.status})"


class TransferDetail(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    header = models.ForeignKey(
        TransferHeader,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_no = models.PositiveIntegerField()

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="transfer_lines",
    )
    quantity = models.PositiveIntegerField()

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    failure_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["header", "line_no"]
        constraints = [
            models.UniqueConstraint(fields=["header", "line_no"], name="unique_transfer_line_no"),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="chk_transfer_line_qty_gt_zero"),
        ]

    def __str__(self):
        return f"{self.header.reference_no} #{self.line_no}"


class TransferAllocation(models.Model):
    detail = models.ForeignKey(
        TransferDetail,
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    source_batch = models.ForeignKey(
        Batch,
        on_delete=models.PROTECT,
        related_name="transfer_allocations_out",
    )
    destination_batch = models.ForeignKey(
        Batch,
        on_delete=models.PROTECT,
        related_name="transfer_allocations_in",
    )

    quantity = models.PositiveIntegerField()

    # Identity carried to the destination (immutable snapshot)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)
    expiration_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["detail", "id"]

    def __str__(self):
        return f"{self.source_batch_id} -> {self.destination_batch_id} x{self.quantity}"
