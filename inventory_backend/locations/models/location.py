# locations/models/location.py

import uuid

from django.db import models
from django.db.models import Q


class Location(models.Model):
    """
    Represents a physical place where stock is held.

    Guarantees:
    - Locations are stable master-data (batches reference them with PROTECT)
    - code is optional, but if provided it must be unique
    - inactive locations cannot send or receive transfers
    """

    class Kind(models.TextChoices):
        WAREHOUSE = "WAREHOUSE", "Warehouse"
        STORE = "STORE", "Store"
        PHARMACY = "PHARMACY", "Pharmacy"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)

    code = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        db_index=True,
        help_text="Unique location code (optional). If set, must be unique.",
    )

    kind = models.CharField(
        max_length=16,
        choices=Kind.choices,
        default=Kind.STORE,
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(code__isnull=False) & ~Q(code=""),
                name="uniq_location_code_when_present",
            ),
        ]

    def __str__(self):
        c = (self.code or "").strip()
        if c:
            return f"{self.name} ({c})"
        return self.name
