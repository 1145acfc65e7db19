# inventory/services/ledger.py

"""
MOVEMENT LEDGER

The only writer of StockMovement rows, plus the replay-based reconciliation used by
audits and the verify_stock_ledger command.

Rules:
- record_movement() must run inside the transaction that mutated the batch; calling
  it outside transaction.atomic raises LedgerError
- remaining_after is read from the batch row after the paired mutation, in the same
  transaction
- quantities are stored signed (see StockMovement.TYPE_SIGN)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import Sum

from inventory.exceptions import LedgerError
from inventory.models import Batch, StockMovement

from .normalize import to_int_qty

logger = logging.getLogger(__name__)

MovementType = StockMovement.MovementType


def signed_quantity(movement_type, quantity) -> int:
    qty = to_int_qty(quantity)
    if qty == 0:
        raise LedgerError("Ledger quantity must be non-zero")

    sign = StockMovement.TYPE_SIGN.get(MovementType(movement_type))
    if sign is None:
        return qty
    return sign * abs(qty)


def record_movement(
    *,
    batch,
    movement_type,
    quantity,
    reference_no: str,
    user=None,
    note: str = "",
    occurred_at=None,
) -> StockMovement:
    """
    Append one ledger row for a batch mutation that already happened in this transaction.

    quantity: magnitude for typed movements (sign is implied by movement_type);
              signed delta for ADJUSTMENT.
    """
    if not transaction.get_connection().in_atomic_block:
        raise LedgerError(
            "Ledger entries must be recorded inside the transaction that mutated the batch"
        )

    batch_id = getattr(batch, "pk", batch)
    snapshot = (
        Batch.objects.filter(pk=batch_id)
        .values("product_id", "location_id", "unit_cost", "available_quantity")
        .get()
    )

    fields = {
        "product_id": snapshot["product_id"],
        "location_id": snapshot["location_id"],
        "batch_id": batch_id,
        "movement_type": movement_type,
        "quantity": signed_quantity(movement_type, quantity),
        "remaining_after": int(snapshot["available_quantity"]),
        "reference_no": (reference_no or "").strip(),
        "unit_cost_snapshot": snapshot["unit_cost"],
        "note": (note or "")[:255],
        "performed_by": user if getattr(user, "is_authenticated", False) else None,
    }
    if occurred_at is not None:
        fields["occurred_at"] = occurred_at

    return StockMovement.objects.create(**fields)


# -------------------------------------------------
# REPLAY / RECONCILIATION
# -------------------------------------------------


@dataclass(frozen=True)
class LedgerDiscrepancy:
    batch_id: int
    available_quantity: int
    replayed_quantity: int
    first_bad_movement_id: int | None = None

    @property
    def drift(self) -> int:
        return self.available_quantity - self.replayed_quantity

    def as_dict(self) -> dict:
        return {
            "batch_id": self.batch_id,
            "available_quantity": self.available_quantity,
            "replayed_quantity": self.replayed_quantity,
            "drift": self.drift,
            "first_bad_movement_id": self.first_bad_movement_id,
        }


def replay_batch(batch) -> int:
    """Sum of signed ledger quantities for a batch."""
    return int(
        StockMovement.objects.for_batch(batch).aggregate(total=Sum("quantity")).get("total") or 0
    )


def verify_batch(batch) -> LedgerDiscrepancy | None:
    """
    Replay a batch's movements in order, checking each remaining_after snapshot and
    the final total against the live batch quantity.
    """
    batch_id = getattr(batch, "pk", batch)
    available = int(Batch.objects.filter(pk=batch_id).values_list("available_quantity", flat=True).get())

    running = 0
    first_bad = None
    for movement_id, qty, remaining_after in (
        StockMovement.objects.for_batch(batch_id)
        .in_replay_order()
        .values_list("id", "quantity", "remaining_after")
    ):
        running += int(qty)
        if first_bad is None and running != int(remaining_after):
            first_bad = movement_id

    if running == available and first_bad is None:
        return None

    return LedgerDiscrepancy(
        batch_id=batch_id,
        available_quantity=available,
        replayed_quantity=running,
        first_bad_movement_id=first_bad,
    )


def verify_ledger(*, product=None, location=None) -> list[LedgerDiscrepancy]:
    """
    Replay every batch entry by entry. A batch is reported when its total drifts from
    available_quantity or when any remaining_after snapshot disagrees with the replay,
    even if the final total matches.
    """
    batches = Batch.objects.all()
    if product is not None:
        batches = batches.filter(product_id=getattr(product, "pk", product))
    if location is not None:
        batches = batches.filter(location_id=getattr(location, "pk", location))

    discrepancies = []
    for batch_id in batches.order_by("id").values_list("id", flat=True):
        found = verify_batch(batch_id)
        if found is not None:
            discrepancies.append(found)

    for found in discrepancies:
        logger.error(
            "Ledger drift detected",
            extra={"batch_id": found.batch_id, "drift": found.drift, "first_bad_movement_id": found.first_bad_movement_id},
        )
    return discrepancies
