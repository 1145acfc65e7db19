# inventory/services/consumption.py

"""
STOCK CONSUMPTION (SALES + WRITE-OFFS)

Purpose:
- Allocate against a location's batches and apply the plan atomically:
  decrement each batch, append one ledger row per batch.
- The POS collaborator's "sell" operation: sell_stock() for one line,
  sell_lines() for a whole checkout (any shortfall aborts every line).

Rules:
- Allocation reads take row locks (SELECT ... FOR UPDATE) in canonical order.
- Each SALE movement snapshots the batch unit_cost, so cost-of-goods-sold per batch
  is available from the result and from the ledger.
- Quantity 0 is a no-op: empty plan, no mutations, no ledger rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from inventory.models import StockMovement

from . import batch_store, ledger
from .allocator import AllocationPlan, allocate
from .normalize import SALE_PREFIX, mint_reference, require_non_negative_qty
from .retry import retry_on_batch_race

MovementType = StockMovement.MovementType


@dataclass(frozen=True)
class ConsumptionResult:
    plan: AllocationPlan
    movements: list[StockMovement] = field(default_factory=list)
    reference_no: str = ""

    @property
    def quantity(self) -> int:
        return self.plan.allocated

    @property
    def cost_of_goods(self) -> Decimal:
        return sum((m.total_cost for m in self.movements), Decimal("0.00"))

    def cost_by_batch(self) -> list[dict]:
        return [
            {
                "batch_id": m.batch_id,
                "quantity": abs(m.quantity),
                "unit_cost": m.unit_cost_snapshot,
                "cost": m.total_cost,
            }
            for m in self.movements
        ]


def apply_plan(
    *,
    plan: AllocationPlan,
    movement_type,
    reference_no: str,
    user=None,
    note: str = "",
) -> list[StockMovement]:
    """
    Decrement every batch in the plan and record the paired ledger rows.

    Must run inside the transaction that produced the (locked) plan.
    """
    movements = []
    for line in plan:
        batch_store.decrement(batch=line.batch, quantity=line.quantity)
        movements.append(
            ledger.record_movement(
                batch=line.batch,
                movement_type=movement_type,
                quantity=-line.quantity,
                reference_no=reference_no,
                user=user,
                note=note,
            )
        )
    return movements


@transaction.atomic
def consume_stock(
    *,
    product,
    location,
    quantity,
    reference_no: str,
    movement_type=MovementType.OUT,
    strategy=None,
    user=None,
    note: str = "",
) -> ConsumptionResult:
    if movement_type not in (MovementType.OUT, MovementType.ADJUSTMENT):
        raise ValidationError("consume_stock only records OUT or ADJUSTMENT movements")

    qty = require_non_negative_qty(quantity)
    plan = allocate(product=product, location=location, quantity=qty, strategy=strategy, lock=True)
    if not plan.lines:
        return ConsumptionResult(plan=plan, reference_no=reference_no)

    movements = apply_plan(
        plan=plan,
        movement_type=movement_type,
        reference_no=reference_no,
        user=user,
        note=note,
    )
    return ConsumptionResult(plan=plan, movements=movements, reference_no=reference_no)


@retry_on_batch_race()
def sell_stock(
    *,
    product,
    location,
    quantity,
    reference_no: str | None = None,
    strategy=None,
    user=None,
) -> ConsumptionResult:
    """
    Sell one line item: FIFO consumption with OUT ledger rows under the sale reference.
    """
    return consume_stock(
        product=product,
        location=location,
        quantity=quantity,
        reference_no=reference_no or mint_reference(SALE_PREFIX),
        movement_type=MovementType.OUT,
        strategy=strategy,
        user=user,
    )


@retry_on_batch_race()
@transaction.atomic
def sell_lines(*, location, lines, reference_no: str | None = None, user=None) -> list[ConsumptionResult]:
    """
    Sell a whole checkout atomically. lines: [{"product": ..., "quantity": ...}, ...]

    Any InsufficientStock aborts every line (nothing is committed).
    """
    if not lines:
        raise ValidationError("A sale requires at least one line")

    ref = reference_no or mint_reference(SALE_PREFIX)
    results = []
    for line in lines:
        results.append(
            consume_stock(
                product=line["product"],
                location=location,
                quantity=line["quantity"],
                reference_no=ref,
                movement_type=MovementType.OUT,
                user=user,
            )
        )
    return results
