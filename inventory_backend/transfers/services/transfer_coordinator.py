# transfers/services/transfer_coordinator.py

"""
TRANSFER COORDINATOR

Moves stock between locations while carrying batch provenance (lot reference, unit
cost, selling price, expiration) from each consumed source batch to the destination.

Per line:
1) allocate the line quantity at the source (locked, canonical order)
2) per plan entry: decrement the source batch + TRANSFER_OUT movement
3) top up the destination lot with the exact same identity, or create it
   (origin=TRANSFER, source_batch=<source>) + TRANSFER_IN movement
4) store a TransferAllocation row (source batch -> destination batch)

Failure policy:
- default (all-or-nothing): the first failing line aborts the whole transfer; every
  line is rolled back, the header goes back to pending and TransferPartialFailure is
  raised naming the line
- partial=True: each line runs in its own savepoint; failing lines are marked failed
  and reported on the result, completed lines stay committed
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import OuterRef, Q, Subquery
from django.utils import timezone

from inventory.exceptions import (
    DuplicateLot,
    InsufficientStock,
    InvalidTransferState,
    InventoryError,
    TransferPartialFailure,
)
from inventory.models import Batch, StockMovement
from inventory.services import batch_store, ledger
from inventory.services.allocator import allocate
from inventory.services.normalize import TRANSFER_PREFIX, mint_reference, require_positive_qty
from inventory.services.retry import retry_on_batch_race
from locations.models import Location
from transfers.models import TransferAllocation, TransferDetail, TransferHeader

logger = logging.getLogger(__name__)

MovementType = StockMovement.MovementType

# Line-level failures that are reported per line; anything else aborts as-is.
LINE_ERRORS = (InsufficientStock, DuplicateLot)


@dataclass(frozen=True)
class LineFailure:
    line_no: int
    product_id: object
    quantity: int
    error: InventoryError

    def as_dict(self) -> dict:
        return {
            "line_no": self.line_no,
            "product_id": str(self.product_id),
            "quantity": self.quantity,
            "error": self.error.as_dict(),
        }


@dataclass
class TransferResult:
    transfer: TransferHeader
    allocations: list[TransferAllocation] = field(default_factory=list)
    failures: list[LineFailure] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.failures

    @property
    def error(self) -> TransferPartialFailure | None:
        if not self.failures:
            return None
        return TransferPartialFailure(
            transfer=self.transfer,
            failures=self.failures,
            committed=bool(self.allocations),
        )


# -------------------------------------------------
# CREATE / APPROVE
# -------------------------------------------------


def _active_location(location) -> Location:
    loc = location if isinstance(location, Location) else Location.objects.get(pk=location)
    if not loc.is_active:
        raise ValidationError(f"Location '{loc}' is inactive")
    return loc


def _merge_lines(lines) -> OrderedDict:
    """
    Aggregate duplicate product lines, keeping first-seen order.
    lines: [{"product": <Product|pk>, "quantity": int}, ...]
    """
    merged: OrderedDict = OrderedDict()
    for raw in lines:
        product = raw.get("product")
        if product is None:
            raise ValidationError("Each transfer line requires a product")

        qty = require_positive_qty(raw.get("quantity"))
        key = getattr(product, "pk", product)
        if key in merged:
            merged[key] = (merged[key][0], merged[key][1] + qty)
        else:
            merged[key] = (product, qty)
    return merged


@transaction.atomic
def create_transfer(
    *,
    source_location,
    destination_location,
    lines,
    reference_no: str | None = None,
    user=None,
) -> TransferHeader:
    source = _active_location(source_location)
    destination = _active_location(destination_location)
    if source.pk == destination.pk:
        raise ValidationError("Source and destination locations must differ")

    if not lines:
        raise ValidationError("A transfer requires at least one line")

    merged = _merge_lines(lines)

    ref = (reference_no or "").strip() or mint_reference(TRANSFER_PREFIX)
    if TransferHeader.objects.filter(reference_no=ref).exists():
        raise ValidationError(f"Transfer reference '{ref}' already exists")

    header = TransferHeader(
        reference_no=ref,
        source_location=source,
        destination_location=destination,
        requested_by=user if getattr(user, "is_authenticated", False) else None,
    )
    header.full_clean(validate_constraints=False)
    header.save()

    TransferDetail.objects.bulk_create(
        [
            TransferDetail(
                header=header,
                line_no=line_no,
                product_id=getattr(product, "pk", product),
                quantity=qty,
            )
            for line_no, (product, qty) in enumerate(merged.values(), start=1)
        ]
    )

    logger.info(
        "Transfer created",
        extra={"transfer": ref, "source": str(source.pk), "destination": str(destination.pk), "lines": len(merged)},
    )
    return header


@transaction.atomic
def approve_transfer(*, transfer, user=None) -> TransferHeader:
    header = TransferHeader.objects.select_for_update().get(pk=getattr(transfer, "pk", transfer))
    if header.status != TransferHeader.Status.PENDING:
        raise InvalidTransferState(f"Transfer {header.reference_no} is {header.status}; only pending transfers can be approved")

    header.status = TransferHeader.Status.APPROVED
    header.approved_at = timezone.now()
    header.save(update_fields=["status", "approved_at"])

    logger.info("Transfer approved", extra={"transfer": header.reference_no})
    return header


# -------------------------------------------------
# EXECUTE
# -------------------------------------------------


def _lock_executable(transfer) -> TransferHeader:
    header = (
        TransferHeader.objects.select_for_update(of=("self",))
        .select_related("source_location", "destination_location")
        .get(pk=getattr(transfer, "pk", transfer))
    )
    if not header.is_executable:
        raise InvalidTransferState(f"Transfer {header.reference_no} is already {header.status}")
    if not header.source_location.is_active or not header.destination_location.is_active:
        raise ValidationError("Transfers require active source and destination locations")
    return header


def _open_lines(header: TransferHeader) -> list[TransferDetail]:
    return list(
        header.lines.exclude(status=TransferDetail.Status.COMPLETED)
        .select_related("product")
        .order_by("line_no")
    )


def _move_line(*, header: TransferHeader, detail: TransferDetail, user=None, strategy=None) -> list[TransferAllocation]:
    plan = allocate(
        product=detail.product,
        location=header.source_location,
        quantity=detail.quantity,
        strategy=strategy,
        lock=True,
    )

    allocations = []
    for line in plan:
        source = line.batch
        batch_store.decrement(batch=source, quantity=line.quantity)
        ledger.record_movement(
            batch=source,
            movement_type=MovementType.TRANSFER_OUT,
            quantity=line.quantity,
            reference_no=header.reference_no,
            user=user,
            note=f"To {header.destination_location.name}",
        )

        destination, _ = batch_store.put_lot(
            product=detail.product,
            location=header.destination_location,
            **source.identity(),
            quantity=line.quantity,
            origin=Batch.Origin.TRANSFER,
            source_batch=source,
        )
        ledger.record_movement(
            batch=destination,
            movement_type=MovementType.TRANSFER_IN,
            quantity=line.quantity,
            reference_no=header.reference_no,
            user=user,
            note=f"From {header.source_location.name}",
        )

        allocations.append(
            TransferAllocation.objects.create(
                detail=detail,
                source_batch=source,
                destination_batch=destination,
                quantity=line.quantity,
                unit_cost=source.unit_cost,
                selling_price=source.selling_price,
                expiration_date=source.expiration_date,
            )
        )

    detail.status = TransferDetail.Status.COMPLETED
    detail.failure_reason = ""
    detail.save(update_fields=["status", "failure_reason"])
    return allocations


def _complete(header: TransferHeader):
    header.status = TransferHeader.Status.COMPLETED
    header.completed_at = timezone.now()
    header.last_error = ""
    header.save(update_fields=["status", "completed_at", "last_error"])


def _mark_failed(detail: TransferDetail, exc: InventoryError):
    TransferDetail.objects.filter(pk=detail.pk).update(
        status=TransferDetail.Status.FAILED,
        failure_reason=str(exc)[:255],
    )


@retry_on_batch_race()
def execute_transfer(*, transfer, user=None, partial: bool = False, strategy=None) -> TransferResult:
    if partial:
        return _execute_partial(transfer=transfer, user=user, strategy=strategy)
    return _execute_all_or_nothing(transfer=transfer, user=user, strategy=strategy)


def _execute_all_or_nothing(*, transfer, user=None, strategy=None) -> TransferResult:
    try:
        with transaction.atomic():
            header = _lock_executable(transfer)
            allocations = []
            for detail in _open_lines(header):
                try:
                    allocations.extend(_move_line(header=header, detail=detail, user=user, strategy=strategy))
                except LINE_ERRORS as exc:
                    raise TransferPartialFailure(
                        transfer=header,
                        failures=[
                            LineFailure(
                                line_no=detail.line_no,
                                product_id=detail.product_id,
                                quantity=detail.quantity,
                                error=exc,
                            )
                        ],
                    ) from exc
            _complete(header)
    except TransferPartialFailure as exc:
        _record_rollback(transfer=exc.transfer, failure=exc)
        raise

    logger.info(
        "Transfer executed",
        extra={"transfer": header.reference_no, "allocations": len(allocations)},
    )
    return TransferResult(transfer=header, allocations=allocations)


@transaction.atomic
def _record_rollback(*, transfer: TransferHeader, failure: TransferPartialFailure):
    """
    Runs after the transfer's own savepoint rolled back: nothing moved, the header is
    back to pending and the failing line carries the reason.
    """
    header = TransferHeader.objects.select_for_update().get(pk=transfer.pk)
    if header.status == TransferHeader.Status.APPROVED:
        logger.warning(
            "Approved transfer failed; returning it to pending",
            extra={"transfer": header.reference_no},
        )
    header.status = TransferHeader.Status.PENDING
    header.last_error = str(failure)
    header.save(update_fields=["status", "last_error"])

    for line_failure in failure.failures:
        detail = header.lines.get(line_no=line_failure.line_no)
        _mark_failed(detail, line_failure.error)
        logger.warning(
            "Transfer failed",
            extra={
                "transfer": header.reference_no,
                "line_no": line_failure.line_no,
                "error_code": line_failure.error.code,
                "details": line_failure.error.details(),
            },
        )

    transfer.status = header.status
    transfer.last_error = header.last_error


@transaction.atomic
def _execute_partial(*, transfer, user=None, strategy=None) -> TransferResult:
    header = _lock_executable(transfer)

    result = TransferResult(transfer=header)
    for detail in _open_lines(header):
        try:
            with transaction.atomic():
                result.allocations.extend(_move_line(header=header, detail=detail, user=user, strategy=strategy))
        except LINE_ERRORS as exc:
            _mark_failed(detail, exc)
            result.failures.append(
                LineFailure(
                    line_no=detail.line_no,
                    product_id=detail.product_id,
                    quantity=detail.quantity,
                    error=exc,
                )
            )
            logger.warning(
                "Transfer line failed",
                extra={"transfer": header.reference_no, "line_no": detail.line_no, "error_code": exc.code},
            )

    if result.allocations:
        _complete(header)
    if result.failures:
        header.last_error = str(result.error)
        header.save(update_fields=["last_error"])

    logger.info(
        "Transfer executed (partial mode)",
        extra={
            "transfer": header.reference_no,
            "allocations": len(result.allocations),
            "failed_lines": [f.line_no for f in result.failures],
        },
    )
    return result


def transfer_stock(
    *,
    source_location,
    destination_location,
    lines,
    reference_no: str | None = None,
    user=None,
    partial: bool = False,
    strategy=None,
) -> TransferResult:
    """
    Create and execute a transfer in one call.

    In all-or-nothing mode a failure leaves the pending header (with the failing line
    marked) so the operator can correct stock and re-execute it.
    """
    header = create_transfer(
        source_location=source_location,
        destination_location=destination_location,
        lines=lines,
        reference_no=reference_no,
        user=user,
    )
    return execute_transfer(transfer=header, user=user, partial=partial, strategy=strategy)


# -------------------------------------------------
# READS
# -------------------------------------------------


def transferred_batches(*, location, product=None):
    """
    Batches at `location` that arrived by transfer, with their source batch and the
    reference of the latest transfer that fed them.
    """
    latest_ref = (
        TransferAllocation.objects.filter(destination_batch=OuterRef("pk"))
        .order_by("-id")
        .values("detail__header__reference_no")[:1]
    )
    qs = (
        Batch.objects.filter(
            location_id=getattr(location, "pk", location),
            origin=Batch.Origin.TRANSFER,
        )
        .select_related("product", "source_batch", "source_batch__location")
        .annotate(transfer_reference=Subquery(latest_ref))
    )
    if product is not None:
        qs = qs.filter(product_id=getattr(product, "pk", product))
    return qs.order_by("entry_date", "id")


def transfer_history(*, location=None, status=None):
    qs = TransferHeader.objects.select_related("source_location", "destination_location").prefetch_related(
        "lines", "lines__product"
    )
    if location is not None:
        loc_id = getattr(location, "pk", location)
        qs = qs.filter(Q(source_location_id=loc_id) | Q(destination_location_id=loc_id))
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at", "-id")
