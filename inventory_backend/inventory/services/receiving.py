# inventory/services/receiving.py

"""
STOCK RECEIVING

Receiving is the only way a RECEIPT batch comes into existence:
- a new lot -> new Batch + IN movement
- the same lot again (same reference, cost, price and expiration) -> top-up + IN movement
- the same reference with a different identity -> DuplicateLot
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from inventory.models import Batch, StockMovement
from products.models import Product

from . import batch_store, ledger
from .normalize import RECEIPT_PREFIX, mint_reference, require_positive_qty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptResult:
    batch: Batch
    movement: StockMovement
    created: bool


@transaction.atomic
def receive_stock(
    *,
    product,
    location,
    quantity,
    unit_cost,
    selling_price=None,
    expiration_date=None,
    batch_reference: str | None = None,
    reference_no: str | None = None,
    user=None,
    note: str = "",
) -> ReceiptResult:
    """
    Put `quantity` units of a lot into stock at `location`.

    selling_price defaults to the product's current unit_price; batch_reference is
    minted (RCV-...) when the receiving document carries none.
    """
    qty = require_positive_qty(quantity)
    ref = (reference_no or "").strip() or mint_reference(RECEIPT_PREFIX)
    lot = (batch_reference or "").strip() or ref

    if selling_price in (None, ""):
        prod = product if isinstance(product, Product) else Product.objects.get(pk=product)
        selling_price = prod.unit_price

    batch, created = batch_store.put_lot(
        product=product,
        location=location,
        batch_reference=lot,
        unit_cost=unit_cost,
        selling_price=selling_price,
        expiration_date=expiration_date,
        quantity=qty,
        origin=Batch.Origin.RECEIPT,
    )

    movement = ledger.record_movement(
        batch=batch,
        movement_type=StockMovement.MovementType.IN,
        quantity=qty,
        reference_no=ref,
        user=user,
        note=note,
    )

    logger.info(
        "Stock received",
        extra={
            "batch_id": batch.pk,
            "batch_reference": lot,
            "quantity": qty,
            "created": created,
            "reference_no": ref,
        },
    )
    return ReceiptResult(batch=batch, movement=movement, created=created)
