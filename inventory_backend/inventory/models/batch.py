# inventory/models/batch.py

"""
BATCH (LOT-BASED, LOCATION-SCOPED INVENTORY)

One row per product x location x lot.

CANONICAL MODEL:
- available_quantity is the ONLY mutable quantity and is changed ONLY via
  inventory.services.batch_store (conditional F() updates, never read-modify-write)
- identity fields (batch_reference, unit_cost, selling_price, expiration_date) are
  immutable after creation: a price or lot change creates a new Batch
- a batch at zero is kept for audit/history, never deleted once referenced by a
  StockMovement
- transfers create/top-up a Batch at the destination carrying the source identity;
  source_batch records where the units came from
- FIFO order is (entry_date, id); the auto-increment id is the stable tiebreak
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from locations.models import Location
from products.models import Product

IDENTITY_FIELDS = ("product_id", "location_id", "batch_reference", "unit_cost", "selling_price", "expiration_date")


class Batch(models.Model):
    class Origin(models.TextChoices):
        RECEIPT = "RECEIPT", "Stock Receipt"
        TRANSFER = "TRANSFER", "Transfer In"
        RETURN = "RETURN", "Customer Return"

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="batches",
    )

    location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="batches",
    )

    batch_reference = models.CharField(
        max_length=128,
        help_text="Lot identifier from the receiving document",
    )

    available_quantity = models.PositiveIntegerField(
        default=0,
        help_text="Remaining quantity (service-managed only)",
    )

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)
    expiration_date = models.DateField(null=True, blank=True)

    entry_date = models.DateTimeField(default=timezone.now, db_index=True)

    origin = models.CharField(
        max_length=16,
        choices=Origin.choices,
        default=Origin.RECEIPT,
    )

    source_batch = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="derived_batches",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["entry_date", "id"]
        indexes = [
            models.Index(fields=["product", "location", "entry_date"], name="batch_fifo_idx"),
            models.Index(fields=["product", "location", "expiration_date"], name="batch_fefo_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "location", "batch_reference"],
                name="unique_lot_per_product_location",
            ),
            models.CheckConstraint(
                condition=Q(available_quantity__gte=0),
                name="chk_batch_available_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name="chk_batch_unit_cost_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(selling_price__gte=0),
                name="chk_batch_selling_price_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if not (self.batch_reference or "").strip():
            raise ValidationError({"batch_reference": "batch_reference is required"})

        if self.available_quantity is None or int(self.available_quantity) < 0:
            raise ValidationError({"available_quantity": "available_quantity cannot be negative"})

        if self.unit_cost is None or Decimal(self.unit_cost) < Decimal("0.00"):
            raise ValidationError({"unit_cost": "unit_cost cannot be negative"})

        if self.selling_price is None or Decimal(self.selling_price) < Decimal("0.00"):
            raise ValidationError({"selling_price": "selling_price cannot be negative"})

        if self.source_batch_id and self.source_batch.product_id != self.product_id:
            raise ValidationError({"source_batch": "source batch belongs to another product"})

    # -------------------------------------------------
    # IMMUTABILITY
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = Batch.objects.only(*IDENTITY_FIELDS).get(pk=self.pk)
            changed = [f for f in IDENTITY_FIELDS if getattr(original, f) != getattr(self, f)]
            if changed:
                raise ValidationError(
                    {f.removesuffix("_id"): "batch identity is immutable; create a new batch" for f in changed}
                )

        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """
        Audit safety: once a batch has movements, it must never be deleted.
        """
        if self.movements.exists():
            raise ValidationError("Cannot delete Batch: it has StockMovement audit history.")
        return super().delete(*args, **kwargs)

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    def identity(self) -> dict:
        return {
            "batch_reference": self.batch_reference,
            "unit_cost": self.unit_cost,
            "selling_price": self.selling_price,
            "expiration_date": self.expiration_date,
        }

    @property
    def is_expired(self) -> bool:
        return self.expiration_date is not None and self.expiration_date < timezone.localdate()

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        location_name = getattr(self.location, "name", "Location")
        return f"{location_name} | {product_name} | Lot {self.batch_reference}"
