# returns/models/stock_return.py

from django.conf import settings
from django.db import models
from django.db.models import Q

from locations.models import Location
from products.models import Product


class StockReturn(models.Model):
    """
    One return of a product against a prior sale or transfer reference.

    A return is recorded as pending and moves no stock until it is approved. Rejected
    returns never restock.

    provenance_lost=True means the units could not be traced back to their original
    batches and were (or will be, on approval) restocked into a new return lot at the
    product's default cost.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    # Statuses whose quantity counts against what a reference can still return
    RESERVING_STATUSES = (Status.PENDING, Status.APPROVED)

    reference_no = models.CharField(max_length=64, unique=True)
    original_reference = models.CharField(max_length=64, db_index=True)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="returns",
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="returns",
    )

    quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True)
    provenance_lost = models.BooleanField(default=False)

    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_returns",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_stock_returns",
    )
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="rejected_stock_returns",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["original_reference", "product"], name="return_lineage_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="chk_return_qty_gt_zero"),
            models.CheckConstraint(
                condition=~Q(status="rejected") | ~Q(rejection_reason=""),
                name="chk_return_rejection_has_reason",
            ),
        ]

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    def __str__(self):
        return f"{self.reference_no} <- {self.original_reference} x{self.quantity} ({self.status})"
