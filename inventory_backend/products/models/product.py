# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum

from .category import Category


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in inventory.Batch (one row per product x location x lot)
    - Quantity on hand = sum of Batch.available_quantity, optionally scoped to a location

    PRICING:
    - unit_price is the base selling price (srp) for new lots without a supplier price
    - default_unit_cost is the fallback cost basis used when a returned unit's
      original batch cannot be resolved
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    barcode = models.CharField(max_length=64, unique=True, db_index=True)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    brand = models.CharField(max_length=120, blank=True)
    supplier = models.CharField(max_length=255, blank=True)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    default_unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.barcode})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) <= 0:
            raise ValidationError({"unit_price": "unit_price must be greater than zero"})

        if self.default_unit_cost is not None and Decimal(self.default_unit_cost) < 0:
            raise ValidationError({"default_unit_cost": "default_unit_cost cannot be negative"})

    def stock_at(self, location) -> int:
        location_id = getattr(location, "pk", location)
        return int(
            self.batches.filter(location_id=location_id)
            .aggregate(total=Sum("available_quantity"))
            .get("total")
            or 0
        )

    @property
    def total_stock(self) -> int:
        """Quantity on hand across every location (derived, never stored)."""
        return int(self.batches.aggregate(total=Sum("available_quantity")).get("total") or 0)
