# inventory/services/batch_store.py

"""
BATCH STORE

Data access + mutation primitives for Batch rows. Nothing here writes the ledger;
callers pair every mutation with inventory.services.ledger.record_movement() inside
the same transaction.

Concurrency rules:
- Quantity changes are single conditional UPDATE statements using F() expressions.
  decrement() re-checks availability at execution time (the UPDATE matches only while
  available_quantity >= qty), so a stale read can never push a batch below zero.
- Candidate reads for allocation use SELECT ... FOR UPDATE, always in FIFO order
  (entry_date, id) whatever the strategy, so concurrent FIFO and FEFO allocations
  lock rows in the same order. FEFO candidates are re-sorted after locking.
"""

from __future__ import annotations

from datetime import date

from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.db.models import F

from inventory.exceptions import DuplicateLot, InsufficientBatchQuantity
from inventory.models import Batch

from .normalize import require_positive_qty, to_money, to_optional_date


class AllocationStrategy(models.TextChoices):
    FIFO = "FIFO", "Oldest entry first"
    FEFO = "FEFO", "Earliest expiration first"


LOCK_ORDERING = ("entry_date", "id")


def allocation_key(strategy: AllocationStrategy):
    """
    Exactly one ordering per strategy; the auto-increment id is always the final
    tiebreak so repeated calls against an unchanged store are deterministic.
    FEFO puts batches without an expiration date last.
    """
    if strategy == AllocationStrategy.FEFO:
        return lambda b: (b.expiration_date is None, b.expiration_date or date.max, b.id)
    return lambda b: (b.entry_date, b.id)


def _pk(obj):
    return getattr(obj, "pk", obj)


# -------------------------------------------------
# READS
# -------------------------------------------------


def list_available_batches(*, product, location, strategy=AllocationStrategy.FIFO, lock: bool = False) -> list[Batch]:
    """
    Batches with available_quantity > 0 for product at location, in allocation order.

    lock=True takes row locks (must run inside transaction.atomic).
    """
    strategy = AllocationStrategy(strategy)
    qs = Batch.objects.filter(
        product_id=_pk(product),
        location_id=_pk(location),
        available_quantity__gt=0,
    )
    if lock:
        qs = qs.select_for_update()
    batches = list(qs.order_by(*LOCK_ORDERING))
    if strategy != AllocationStrategy.FIFO:
        batches.sort(key=allocation_key(strategy))
    return batches


def current_quantity(batch) -> int:
    return int(
        Batch.objects.filter(pk=_pk(batch)).values_list("available_quantity", flat=True).get()
    )


def get_locked(batch) -> Batch:
    return Batch.objects.select_for_update().get(pk=_pk(batch))


def find_lot(*, product, location, batch_reference: str, lock: bool = True) -> Batch | None:
    qs = Batch.objects.filter(
        product_id=_pk(product),
        location_id=_pk(location),
        batch_reference=batch_reference,
    )
    if lock:
        qs = qs.select_for_update()
    return qs.first()


def has_identity(batch: Batch, *, unit_cost, selling_price, expiration_date) -> bool:
    return (
        to_money(batch.unit_cost) == to_money(unit_cost)
        and to_money(batch.selling_price) == to_money(selling_price)
        and batch.expiration_date == to_optional_date(expiration_date)
    )


# -------------------------------------------------
# MUTATIONS
# -------------------------------------------------


def decrement(*, batch, quantity) -> int:
    """
    Remove quantity from a batch; returns the remaining quantity.

    Raises InsufficientBatchQuantity when the batch no longer holds `quantity`
    at execution time.
    """
    qty = require_positive_qty(quantity)
    batch_id = _pk(batch)

    updated = Batch.objects.filter(pk=batch_id, available_quantity__gte=qty).update(
        available_quantity=F("available_quantity") - qty
    )
    if not updated:
        raise InsufficientBatchQuantity(
            batch_id=batch_id,
            requested=qty,
            available=current_quantity(batch_id),
        )

    remaining = current_quantity(batch_id)
    if isinstance(batch, Batch):
        batch.available_quantity = remaining
    return remaining


def increment(*, batch, quantity) -> int:
    """Add quantity to a batch; returns the new remaining quantity."""
    qty = require_positive_qty(quantity)
    batch_id = _pk(batch)

    updated = Batch.objects.filter(pk=batch_id).update(
        available_quantity=F("available_quantity") + qty
    )
    if not updated:
        raise Batch.DoesNotExist(f"Batch {batch_id} does not exist")

    remaining = current_quantity(batch_id)
    if isinstance(batch, Batch):
        batch.available_quantity = remaining
    return remaining


def create_batch(
    *,
    product,
    location,
    batch_reference: str,
    unit_cost,
    selling_price,
    expiration_date=None,
    quantity,
    origin=Batch.Origin.RECEIPT,
    source_batch=None,
    entry_date=None,
) -> Batch:
    """
    Create a new lot holding `quantity` units.

    Raises DuplicateLot when (product, location, batch_reference) already exists with
    a different cost/price/expiration. An exact match is a caller error: top up the
    existing lot instead (see put_lot()).
    """
    ref = (batch_reference or "").strip()
    if not ref:
        raise ValidationError("batch_reference is required")

    qty = require_positive_qty(quantity)
    cost = to_money(unit_cost, field_name="unit_cost")
    price = to_money(selling_price, field_name="selling_price")
    expiry = to_optional_date(expiration_date)

    existing = find_lot(product=product, location=location, batch_reference=ref, lock=False)
    if existing is not None:
        _raise_for_existing(existing, unit_cost=cost, selling_price=price, expiration_date=expiry)

    fields = {
        "product_id": _pk(product),
        "location_id": _pk(location),
        "batch_reference": ref,
        "unit_cost": cost,
        "selling_price": price,
        "expiration_date": expiry,
        "available_quantity": qty,
        "origin": origin,
        "source_batch_id": _pk(source_batch) if source_batch is not None else None,
    }
    if entry_date is not None:
        fields["entry_date"] = entry_date

    try:
        with transaction.atomic():
            return Batch.objects.create(**fields)
    except IntegrityError:
        # Lost a race against a concurrent creator of the same lot.
        existing = find_lot(product=product, location=location, batch_reference=ref, lock=False)
        if existing is None:
            raise
        _raise_for_existing(existing, unit_cost=cost, selling_price=price, expiration_date=expiry)


def _raise_for_existing(existing: Batch, *, unit_cost, selling_price, expiration_date):
    if not has_identity(
        existing,
        unit_cost=unit_cost,
        selling_price=selling_price,
        expiration_date=expiration_date,
    ):
        raise DuplicateLot(
            product_id=existing.product_id,
            location_id=existing.location_id,
            batch_reference=existing.batch_reference,
            existing_batch_id=existing.pk,
        )
    raise ValidationError(
        f"Lot '{existing.batch_reference}' already exists (batch {existing.pk}); top it up instead."
    )


def put_lot(
    *,
    product,
    location,
    batch_reference: str,
    unit_cost,
    selling_price,
    expiration_date=None,
    quantity,
    origin=Batch.Origin.RECEIPT,
    source_batch=None,
    entry_date=None,
) -> tuple[Batch, bool]:
    """
    Top up the lot whose identity matches exactly, or create it.

    Returns (batch, created). Raises DuplicateLot if the lot reference is already used
    at this location with a different identity.
    """
    qty = require_positive_qty(quantity)

    existing = find_lot(product=product, location=location, batch_reference=batch_reference, lock=True)
    if existing is not None:
        if not has_identity(
            existing,
            unit_cost=unit_cost,
            selling_price=selling_price,
            expiration_date=expiration_date,
        ):
            raise DuplicateLot(
                product_id=existing.product_id,
                location_id=existing.location_id,
                batch_reference=existing.batch_reference,
                existing_batch_id=existing.pk,
            )
        increment(batch=existing, quantity=qty)
        return existing, False

    try:
        batch = create_batch(
            product=product,
            location=location,
            batch_reference=batch_reference,
            unit_cost=unit_cost,
            selling_price=selling_price,
            expiration_date=expiration_date,
            quantity=qty,
            origin=origin,
            source_batch=source_batch,
            entry_date=entry_date,
        )
    except ValidationError:
        # A concurrent writer created the identical lot between our lookup and insert.
        existing = find_lot(product=product, location=location, batch_reference=batch_reference, lock=True)
        if existing is None:
            raise
        increment(batch=existing, quantity=qty)
        return existing, False
    return batch, True
