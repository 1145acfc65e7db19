# inventory/tests/helpers.py

"""
Small builders shared by the inventory, transfers and returns test suites.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model

from inventory.services import receive_stock
from locations.models import Location
from products.models import Product

User = get_user_model()


def make_user(username: str = "clerk", **extra_fields):
    return User.objects.create_user(username=username, password="password123", **extra_fields)


def make_location(name: str = "Main Store", **kwargs) -> Location:
    return Location.objects.create(name=name, **kwargs)


def make_product(name: str = "Paracetamol 500mg", **kwargs) -> Product:
    defaults = {
        "barcode": uuid.uuid4().hex[:12],
        "unit_price": Decimal("25.00"),
        "default_unit_cost": Decimal("12.50"),
    }
    defaults.update(kwargs)
    return Product.objects.create(name=name, **defaults)


def stock(product, location, quantity, *, lot, unit_cost="10.00", selling_price="15.00", expiration_date=None, user=None):
    """Receive a lot and return the batch, refreshed from the database."""
    result = receive_stock(
        product=product,
        location=location,
        quantity=quantity,
        unit_cost=unit_cost,
        selling_price=selling_price,
        expiration_date=expiration_date,
        batch_reference=lot,
        user=user,
    )
    result.batch.refresh_from_db()
    return result.batch
