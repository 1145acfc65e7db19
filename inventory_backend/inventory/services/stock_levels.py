# inventory/services/stock_levels.py

"""
Derived stock quantities. Nothing here is stored: every number is a SUM over batches.
"""

from __future__ import annotations

from django.db.models import Count, DecimalField, F, Sum
from django.db.models.functions import Coalesce

from inventory.models import Batch


def available_quantity(*, product, location=None) -> int:
    """
    Sum of available_quantity over a product's batches, optionally at one location.
    """
    qs = Batch.objects.filter(product_id=getattr(product, "pk", product))
    if location is not None:
        qs = qs.filter(location_id=getattr(location, "pk", location))
    return int(qs.aggregate(total=Coalesce(Sum("available_quantity"), 0))["total"])


def stock_by_location(*, product) -> list[dict]:
    """Per-location totals for one product, skipping locations with nothing left."""
    rows = (
        Batch.objects.filter(product_id=getattr(product, "pk", product), available_quantity__gt=0)
        .order_by()
        .values("location_id", location_name=F("location__name"))
        .annotate(quantity=Sum("available_quantity"), batches=Count("id"))
        .order_by("location_name")
    )
    return [
        {
            "location_id": str(row["location_id"]),
            "location_name": row["location_name"],
            "quantity": int(row["quantity"]),
            "batches": int(row["batches"]),
        }
        for row in rows
    ]


def location_stock_summary(*, location) -> list[dict]:
    """Per-product totals and remaining cost value at one location."""
    rows = (
        Batch.objects.filter(location_id=getattr(location, "pk", location), available_quantity__gt=0)
        .order_by()
        .values("product_id", product_name=F("product__name"))
        .annotate(
            quantity=Sum("available_quantity"),
            value=Sum(
                F("available_quantity") * F("unit_cost"),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            ),
        )
        .order_by("product_name")
    )
    return [
        {
            "product_id": str(row["product_id"]),
            "product_name": row["product_name"],
            "quantity": int(row["quantity"]),
            "value": row["value"],
        }
        for row in rows
    ]
