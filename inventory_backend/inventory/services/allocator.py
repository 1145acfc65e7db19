# inventory/services/allocator.py

"""
ALLOCATOR

Turns "N units of product P at location L" into a consumption plan: an ordered list
of (batch, quantity) pairs that never over-draws any batch.

Ordering (one per call, never mixed inside a plan):
- FIFO (default): entry_date ASC, id ASC. Used for sales, adjustments, transfers.
- FEFO: expiration_date ASC (undated lots last), id ASC. Opt-in for pickers who want
  near-date stock moved first.

The default strategy comes from settings.INVENTORY_ALLOCATION_STRATEGY.

Contract:
- quantity 0 -> empty plan, no reads, no locks
- shortfall -> InsufficientStock (all-or-nothing) unless allow_partial=True
- lock=True reads candidates with SELECT ... FOR UPDATE; the caller must hold a
  transaction and apply the plan inside it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from django.conf import settings

from inventory.exceptions import InsufficientStock
from inventory.models import Batch

from . import batch_store
from .batch_store import AllocationStrategy
from .normalize import require_non_negative_qty


@dataclass(frozen=True)
class PlanLine:
    batch: Batch
    quantity: int

    @property
    def batch_id(self):
        return self.batch.pk

    @property
    def unit_cost(self) -> Decimal:
        return Decimal(self.batch.unit_cost)

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * Decimal(self.quantity)


@dataclass(frozen=True)
class AllocationPlan:
    product_id: object
    location_id: object
    requested: int
    strategy: AllocationStrategy
    lines: tuple[PlanLine, ...] = field(default_factory=tuple)

    def __iter__(self):
        return iter(self.lines)

    def __len__(self):
        return len(self.lines)

    @property
    def allocated(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def shortfall(self) -> int:
        return self.requested - self.allocated

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0

    @property
    def total_cost(self) -> Decimal:
        return sum((line.cost for line in self.lines), Decimal("0.00"))

    def as_pairs(self) -> list[tuple[object, int]]:
        return [(line.batch_id, line.quantity) for line in self.lines]


def resolve_strategy(strategy=None) -> AllocationStrategy:
    raw = strategy or getattr(settings, "INVENTORY_ALLOCATION_STRATEGY", AllocationStrategy.FIFO)
    try:
        return AllocationStrategy(str(raw).upper())
    except ValueError as exc:
        raise ValueError(f"Unknown allocation strategy: {raw}") from exc


def greedy_plan(batches: Iterable[Batch], requested: int) -> list[PlanLine]:
    """
    Take min(remaining, batch.available_quantity) from each batch in the given order
    until the request is exhausted. Empty batches are skipped.
    """
    remaining = requested
    lines = []
    for batch in batches:
        if remaining <= 0:
            break

        available = int(batch.available_quantity or 0)
        if available <= 0:
            continue

        taken = available if available <= remaining else remaining
        lines.append(PlanLine(batch=batch, quantity=taken))
        remaining -= taken
    return lines


def allocate(
    *,
    product,
    location,
    quantity,
    strategy=None,
    allow_partial: bool = False,
    lock: bool = True,
) -> AllocationPlan:
    qty = require_non_negative_qty(quantity)
    chosen = resolve_strategy(strategy)
    product_id = getattr(product, "pk", product)
    location_id = getattr(location, "pk", location)

    if qty == 0:
        return AllocationPlan(
            product_id=product_id,
            location_id=location_id,
            requested=0,
            strategy=chosen,
        )

    candidates = batch_store.list_available_batches(
        product=product_id,
        location=location_id,
        strategy=chosen,
        lock=lock,
    )

    lines = greedy_plan(candidates, qty)
    plan = AllocationPlan(
        product_id=product_id,
        location_id=location_id,
        requested=qty,
        strategy=chosen,
        lines=tuple(lines),
    )

    if not plan.is_complete and not allow_partial:
        raise InsufficientStock(
            product_id=product_id,
            location_id=location_id,
            requested=qty,
            available=plan.allocated,
        )

    return plan
