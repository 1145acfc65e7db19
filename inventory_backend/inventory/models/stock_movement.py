# inventory/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable, append-only record of every batch quantity change.

GUARANTEES:
- Append-only: saving an existing row, deleting, or bulk update/delete raises LedgerError
- quantity is SIGNED: replaying SUM(quantity) for a batch in (occurred_at, id) order
  reproduces Batch.available_quantity
- sign is validated against movement_type (ADJUSTMENT may be either sign, never zero)
- remaining_after snapshots the batch quantity right after the paired mutation
- product/location are denormalized from the batch for reporting
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from inventory.exceptions import LedgerError
from locations.models import Location
from products.models import Product

from .batch import Batch


class StockMovementQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise LedgerError("StockMovement records are immutable and cannot be updated")

    def delete(self):
        raise LedgerError("StockMovement records are immutable and cannot be deleted")

    def for_batch(self, batch):
        return self.filter(batch_id=getattr(batch, "pk", batch))

    def for_reference(self, reference_no: str):
        return self.filter(reference_no=reference_no)

    def in_replay_order(self):
        return self.order_by("occurred_at", "id")


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        IN = "IN", "Stock In"
        OUT = "OUT", "Stock Out"
        TRANSFER_OUT = "TRANSFER_OUT", "Transfer Out"
        TRANSFER_IN = "TRANSFER_IN", "Transfer In"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"
        RETURN = "RETURN", "Return"

    # +1: adds to the batch, -1: removes from it, None: either (never zero)
    TYPE_SIGN = {
        MovementType.IN: 1,
        MovementType.TRANSFER_IN: 1,
        MovementType.RETURN: 1,
        MovementType.OUT: -1,
        MovementType.TRANSFER_OUT: -1,
        MovementType.ADJUSTMENT: None,
    }

    CONSUMPTION_TYPES = (MovementType.OUT, MovementType.TRANSFER_OUT)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )
    batch = models.ForeignKey(
        Batch, on_delete=models.PROTECT, related_name="movements"
    )
    location = models.ForeignKey(
        Location, on_delete=models.PROTECT, related_name="stock_movements"
    )

    movement_type = models.CharField(max_length=16, choices=MovementType.choices)

    quantity = models.IntegerField(help_text="Signed quantity change applied to the batch")
    remaining_after = models.PositiveIntegerField()

    reference_no = models.CharField(max_length=64, db_index=True)

    unit_cost_snapshot = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Batch unit cost at movement time (immutable).",
    )

    note = models.CharField(max_length=255, blank=True)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    occurred_at = models.DateTimeField(default=timezone.now)

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        ordering = ["occurred_at", "id"]
        indexes = [
            models.Index(fields=["occurred_at"], name="movement_occurred_idx"),
            models.Index(fields=["movement_type"], name="movement_type_idx"),
            models.Index(fields=["product", "occurred_at"], name="movement_product_idx"),
            models.Index(fields=["batch", "occurred_at"], name="movement_batch_idx"),
            models.Index(fields=["location", "occurred_at"], name="movement_location_idx"),
        ]

    def clean(self):
        if not self.quantity:
            raise ValidationError("quantity must be non-zero")

        expected = self.TYPE_SIGN.get(self.movement_type)
        if expected is not None and (self.quantity > 0) != (expected > 0):
            direction = "positive" if expected > 0 else "negative"
            raise ValidationError(f"{self.movement_type} requires a {direction} quantity")

        if not (self.reference_no or "").strip():
            raise ValidationError("reference_no is required")

        if self.batch_id:
            batch_vals = (
                Batch.objects.filter(id=self.batch_id)
                .values("product_id", "location_id")
                .first()
            )
            if batch_vals and batch_vals["product_id"] != self.product_id:
                raise ValidationError("Batch does not belong to product")
            if batch_vals and batch_vals["location_id"] != self.location_id:
                raise ValidationError("Batch does not belong to location")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise LedgerError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise LedgerError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def total_cost(self) -> Decimal:
        return Decimal(self.unit_cost_snapshot or 0) * Decimal(abs(int(self.quantity or 0)))

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.movement_type} | {self.quantity:+d} | {self.reference_no}"
