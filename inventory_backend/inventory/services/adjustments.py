# inventory/services/adjustments.py

"""
Stock adjustments: cycle-count corrections, write-offs and expiry.

Every adjustment is an ADJUSTMENT movement carrying a signed delta and a reason.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from inventory.models import StockMovement

from . import batch_store, ledger
from .consumption import ConsumptionResult, consume_stock
from .normalize import ADJUSTMENT_PREFIX, mint_reference, to_int_qty
from .retry import retry_on_batch_race

logger = logging.getLogger(__name__)

MovementType = StockMovement.MovementType


@transaction.atomic
def adjust_batch(*, batch, delta, reason: str, reference_no: str | None = None, user=None) -> StockMovement:
    """
    Apply a signed correction to one batch.

    A negative delta larger than the batch holds raises InsufficientBatchQuantity.
    """
    change = to_int_qty(delta, field_name="delta")
    if change == 0:
        raise ValidationError("Adjustment delta must be non-zero")

    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Adjustment reason is required")

    locked = batch_store.get_locked(batch)
    if change > 0:
        batch_store.increment(batch=locked, quantity=change)
    else:
        batch_store.decrement(batch=locked, quantity=-change)

    ref = reference_no or mint_reference(ADJUSTMENT_PREFIX)
    movement = ledger.record_movement(
        batch=locked,
        movement_type=MovementType.ADJUSTMENT,
        quantity=change,
        reference_no=ref,
        user=user,
        note=reason,
    )

    if hasattr(batch, "available_quantity"):
        batch.available_quantity = locked.available_quantity

    logger.info(
        "Batch adjusted",
        extra={"batch_id": locked.pk, "delta": change, "reference_no": ref},
    )
    return movement


@retry_on_batch_race()
def write_off_stock(*, product, location, quantity, reason: str, user=None) -> ConsumptionResult:
    """Remove damaged or missing units from a location, oldest lots first."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Write-off reason is required")

    return consume_stock(
        product=product,
        location=location,
        quantity=quantity,
        reference_no=mint_reference(ADJUSTMENT_PREFIX),
        movement_type=MovementType.ADJUSTMENT,
        user=user,
        note=reason,
    )


@transaction.atomic
def expire_batch(*, batch, user=None) -> StockMovement | None:
    """Zero out an expired batch. Returns None when there is nothing left to expire."""
    locked = batch_store.get_locked(batch)
    if not locked.is_expired:
        raise ValidationError(f"Batch {locked.pk} has not expired")

    if locked.available_quantity <= 0:
        return None

    return adjust_batch(
        batch=locked,
        delta=-int(locked.available_quantity),
        reason=f"Expired {locked.expiration_date.isoformat()}",
        user=user,
    )
