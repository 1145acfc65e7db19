# returns/services/return_processor.py

"""
RETURN PROCESSOR

Reverses a prior consumption (sale OUT or transfer TRANSFER_OUT) by restoring stock
at the chosen location with the original batch identity.

Workflow:
- request_return()   records a pending return; no stock moves
- approve_return()   restores stock and writes the RETURN movements
- reject_return()    closes a pending return with a reason; never restocks
- process_return()   request + approve in one transaction

Lineage:
- the consumption rows of the product under `original_reference`, newest first
- units already restored by approved returns are skipped first (returns unwind
  newest-first too), so repeated partial returns never restore the same units twice
- pending and approved returns both count against what a reference can still return
- returning to the batch's own location tops up that batch; returning elsewhere tops
  up / creates a lot with the same identity there (origin=RETURN)
- a TRANSFER_OUT row is undone at both ends: the units come back out of the
  destination lot the transfer fed (TRANSFER_OUT under the return reference) before
  they are restored at the source side

No lineage (unknown or purged reference):
- a new RET-... lot at the product's default_unit_cost / unit_price
- ProvenanceLost is attached to the result (never raised) and logged
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from inventory.exceptions import (
    InvalidReturnState,
    ProvenanceLost,
    ReturnQuantityExceeded,
    TransferredStockUnavailable,
)
from inventory.models import Batch, StockMovement
from inventory.services import batch_store, ledger
from inventory.services.normalize import RETURN_PREFIX, mint_reference, require_positive_qty
from locations.models import Location
from returns.models import StockReturn
from transfers.models import TransferAllocation

logger = logging.getLogger(__name__)

MovementType = StockMovement.MovementType


@dataclass
class ReturnResult:
    stock_return: StockReturn
    movements: list[StockMovement] = field(default_factory=list)
    warnings: list[ProvenanceLost] = field(default_factory=list)

    @property
    def provenance_lost(self) -> bool:
        return bool(self.warnings)

    @property
    def reference_no(self) -> str:
        return self.stock_return.reference_no


def _user_or_none(user):
    return user if getattr(user, "is_authenticated", False) else None


# -------------------------------------------------
# LINEAGE READS
# -------------------------------------------------


def consumption_lineage(*, product, original_reference: str):
    """Consumption rows for a product under a reference, newest first."""
    return (
        StockMovement.objects.filter(
            product_id=getattr(product, "pk", product),
            reference_no=original_reference,
            movement_type__in=StockMovement.CONSUMPTION_TYPES,
        )
        .select_related("batch")
        .order_by("-occurred_at", "-id")
    )


def _traced_returns(*, product, original_reference: str, statuses, exclude=None):
    qs = StockReturn.objects.filter(
        product_id=getattr(product, "pk", product),
        original_reference=original_reference,
        provenance_lost=False,
        status__in=statuses,
    )
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    return int(qs.aggregate(total=Sum("quantity"))["total"] or 0)


def returned_quantity(*, product, original_reference: str) -> int:
    """Units of a reference already restored to stock by approved returns."""
    return _traced_returns(
        product=product,
        original_reference=original_reference,
        statuses=(StockReturn.Status.APPROVED,),
    )


def returnable_quantity(*, product, original_reference: str) -> int:
    consumed = sum(abs(m.quantity) for m in consumption_lineage(product=product, original_reference=original_reference))
    reserved = _traced_returns(
        product=product,
        original_reference=original_reference,
        statuses=StockReturn.RESERVING_STATUSES,
    )
    return consumed - reserved


def _lock_lineage(lineage) -> None:
    # Serialize concurrent returns against the same lineage.
    list(Batch.objects.select_for_update().filter(pk__in={m.batch_id for m in lineage}).order_by("id"))


def _check_returnable(*, lineage, product, original_reference: str, quantity: int, exclude=None) -> None:
    consumed = sum(abs(m.quantity) for m in lineage)
    reserved = _traced_returns(
        product=product,
        original_reference=original_reference,
        statuses=StockReturn.RESERVING_STATUSES,
        exclude=exclude,
    )
    if quantity > consumed - reserved:
        raise ReturnQuantityExceeded(
            original_reference=original_reference,
            requested=quantity,
            returnable=consumed - reserved,
        )


# -------------------------------------------------
# REQUEST / REJECT
# -------------------------------------------------


@transaction.atomic
def request_return(
    *,
    product,
    location,
    quantity,
    original_reference: str,
    return_reference: str | None = None,
    reason: str = "",
    user=None,
) -> StockReturn:
    """Record a pending return. Nothing is restocked until approve_return()."""
    qty = require_positive_qty(quantity)
    original_reference = (original_reference or "").strip()
    if not original_reference:
        raise ValidationError("original_reference is required")

    loc = location if isinstance(location, Location) else Location.objects.get(pk=location)
    if not loc.is_active:
        raise ValidationError(f"Location '{loc}' is inactive")

    ref = (return_reference or "").strip() or mint_reference(RETURN_PREFIX)
    if StockReturn.objects.filter(reference_no=ref).exists():
        raise ValidationError(f"Return reference '{ref}' already exists")

    lineage = list(consumption_lineage(product=product, original_reference=original_reference))
    if lineage:
        _lock_lineage(lineage)
        _check_returnable(lineage=lineage, product=product, original_reference=original_reference, quantity=qty)

    stock_return = StockReturn.objects.create(
        reference_no=ref,
        original_reference=original_reference,
        product_id=getattr(product, "pk", product),
        location=loc,
        quantity=qty,
        reason=(reason or "")[:255],
        provenance_lost=not lineage,
        performed_by=_user_or_none(user),
    )

    logger.info(
        "Return recorded",
        extra={
            "return_reference": ref,
            "original_reference": original_reference,
            "quantity": qty,
            "has_lineage": bool(lineage),
        },
    )
    return stock_return


def _lock_pending(stock_return) -> StockReturn:
    locked = (
        StockReturn.objects.select_for_update(of=("self",))
        .select_related("product", "location")
        .get(pk=getattr(stock_return, "pk", stock_return))
    )
    if not locked.is_pending:
        raise InvalidReturnState(f"Return {locked.reference_no} is already {locked.status}")
    return locked


@transaction.atomic
def reject_return(*, stock_return, reason: str, user=None) -> StockReturn:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    locked = _lock_pending(stock_return)
    locked.status = StockReturn.Status.REJECTED
    locked.rejection_reason = reason[:255]
    locked.rejected_by = _user_or_none(user)
    locked.rejected_at = timezone.now()
    locked.save(update_fields=["status", "rejection_reason", "rejected_by", "rejected_at"])

    logger.info(
        "Return rejected",
        extra={"return_reference": locked.reference_no, "reason": locked.rejection_reason},
    )
    return locked


# -------------------------------------------------
# APPROVE (STOCK MOVES HERE)
# -------------------------------------------------


def _restore_to(*, source: Batch, location, quantity: int) -> Batch:
    if source.location_id == getattr(location, "pk", location):
        batch_store.increment(batch=source, quantity=quantity)
        return source

    batch, _ = batch_store.put_lot(
        product=source.product_id,
        location=location,
        **source.identity(),
        quantity=quantity,
        origin=Batch.Origin.RETURN,
        source_batch=source,
    )
    return batch


def _take_back_transferred(*, stock_return: StockReturn, movement: StockMovement, quantity: int, user=None) -> StockMovement:
    """
    Pull `quantity` units of a transfer back out of the destination lot it fed.

    Lines are merged per product and a plan uses each source batch once, so a transfer
    has at most one allocation per source batch.
    """
    allocation = TransferAllocation.objects.select_related("detail__header__source_location").get(
        detail__header__reference_no=movement.reference_no,
        source_batch_id=movement.batch_id,
    )
    destination = batch_store.get_locked(allocation.destination_batch_id)
    if destination.available_quantity < quantity:
        raise TransferredStockUnavailable(
            transfer_reference=movement.reference_no,
            batch_id=destination.pk,
            requested=quantity,
            available=destination.available_quantity,
        )

    batch_store.decrement(batch=destination, quantity=quantity)
    return ledger.record_movement(
        batch=destination,
        movement_type=MovementType.TRANSFER_OUT,
        quantity=quantity,
        reference_no=stock_return.reference_no,
        user=user,
        note=f"Returned to {allocation.detail.header.source_location.name} ({movement.reference_no})",
    )


def _restore_lineage(*, stock_return: StockReturn, lineage, user=None) -> list[StockMovement]:
    _lock_lineage(lineage)
    _check_returnable(
        lineage=lineage,
        product=stock_return.product_id,
        original_reference=stock_return.original_reference,
        quantity=stock_return.quantity,
        exclude=stock_return,
    )

    movements = []
    skip = returned_quantity(product=stock_return.product_id, original_reference=stock_return.original_reference)
    remaining = stock_return.quantity
    for movement in lineage:
        if remaining <= 0:
            break

        consumed_here = abs(movement.quantity)
        if skip >= consumed_here:
            skip -= consumed_here
            continue

        take = min(consumed_here - skip, remaining)
        skip = 0

        if movement.movement_type == MovementType.TRANSFER_OUT:
            movements.append(
                _take_back_transferred(stock_return=stock_return, movement=movement, quantity=take, user=user)
            )

        target = _restore_to(source=movement.batch, location=stock_return.location, quantity=take)
        movements.append(
            ledger.record_movement(
                batch=target,
                movement_type=MovementType.RETURN,
                quantity=take,
                reference_no=stock_return.reference_no,
                user=user,
                note=f"Return of {stock_return.original_reference}",
            )
        )
        remaining -= take

    return movements


def _restock_without_lineage(*, stock_return: StockReturn, user=None) -> tuple[StockMovement, ProvenanceLost]:
    prod = stock_return.product

    batch = batch_store.create_batch(
        product=prod,
        location=stock_return.location,
        batch_reference=stock_return.reference_no,
        unit_cost=prod.default_unit_cost,
        selling_price=prod.unit_price,
        quantity=stock_return.quantity,
        origin=Batch.Origin.RETURN,
    )

    movement = ledger.record_movement(
        batch=batch,
        movement_type=MovementType.RETURN,
        quantity=stock_return.quantity,
        reference_no=stock_return.reference_no,
        user=user,
        note=f"Return of {stock_return.original_reference} (no batch lineage)",
    )

    warning = ProvenanceLost(
        product_id=prod.pk,
        original_reference=stock_return.original_reference,
        quantity=stock_return.quantity,
        batch_id=batch.pk,
    )
    logger.warning(
        "Return restocked without batch lineage",
        extra={
            "return_reference": stock_return.reference_no,
            "original_reference": stock_return.original_reference,
            "product_id": str(prod.pk),
            "batch_id": batch.pk,
            "quantity": stock_return.quantity,
        },
    )
    return movement, warning


@transaction.atomic
def approve_return(*, stock_return, user=None) -> ReturnResult:
    locked = _lock_pending(stock_return)
    if not locked.location.is_active:
        raise ValidationError(f"Location '{locked.location}' is inactive")

    lineage = list(consumption_lineage(product=locked.product_id, original_reference=locked.original_reference))
    result = ReturnResult(stock_return=locked)
    if lineage:
        result.movements = _restore_lineage(stock_return=locked, lineage=lineage, user=user)
    else:
        movement, warning = _restock_without_lineage(stock_return=locked, user=user)
        result.movements = [movement]
        result.warnings = [warning]

    locked.provenance_lost = not lineage
    locked.status = StockReturn.Status.APPROVED
    locked.approved_by = _user_or_none(user)
    locked.approved_at = timezone.now()
    locked.save(update_fields=["provenance_lost", "status", "approved_by", "approved_at"])

    logger.info(
        "Return approved",
        extra={
            "return_reference": locked.reference_no,
            "original_reference": locked.original_reference,
            "quantity": locked.quantity,
            "batches": [m.batch_id for m in result.movements],
        },
    )
    return result


@transaction.atomic
def process_return(
    *,
    product,
    location,
    quantity,
    original_reference: str,
    return_reference: str | None = None,
    reason: str = "",
    user=None,
) -> ReturnResult:
    stock_return = request_return(
        product=product,
        location=location,
        quantity=quantity,
        original_reference=original_reference,
        return_reference=return_reference,
        reason=reason,
        user=user,
    )
    return approve_return(stock_return=stock_return, user=user)
