# inventory/exceptions.py

"""
INVENTORY ENGINE ERRORS

Centralized domain errors for batch allocation, transfers, returns and the ledger.

Recoverability:
- InsufficientStock: real shortfall. Never retried automatically; surface to the operator.
- InsufficientBatchQuantity: a concurrent writer consumed the batch between plan and
  decrement. Recoverable by re-running the whole allocation (see services.retry).
- DuplicateLot: ambiguous provenance. Needs manual resolution.
- TransferPartialFailure: one or more transfer lines failed.

Every error exposes `code` and `as_dict()` so API layers can render it without
parsing messages.
"""

from __future__ import annotations


class InventoryError(Exception):
    """Base exception for all inventory engine failures."""

    code = "INVENTORY_ERROR"

    def details(self) -> dict:
        return {}

    def as_dict(self) -> dict:
        return {"code": self.code, "message": str(self), "details": self.details()}


class InsufficientStock(InventoryError):
    """Requested quantity exceeds the sum of eligible batches at a location."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product_id, location_id, requested: int, available: int):
        self.product_id = product_id
        self.location_id = location_id
        self.requested = int(requested)
        self.available = int(available)
        super().__init__(
            f"Insufficient stock for product {product_id} at location {location_id}. "
            f"Requested: {self.requested}, Available: {self.available}"
        )

    def details(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "location_id": str(self.location_id),
            "requested": self.requested,
            "available": self.available,
        }


class InsufficientBatchQuantity(InventoryError):
    """A batch no longer holds the quantity a plan expected (race detected)."""

    code = "BATCH_QUANTITY_CHANGED"

    def __init__(self, *, batch_id, requested: int, available: int):
        self.batch_id = batch_id
        self.requested = int(requested)
        self.available = int(available)
        super().__init__(
            f"Batch {batch_id} cannot supply {self.requested} unit(s); "
            f"only {self.available} remaining."
        )

    def details(self) -> dict:
        return {
            "batch_id": self.batch_id,
            "requested": self.requested,
            "available": self.available,
        }


class DuplicateLot(InventoryError):
    """A lot with the same reference exists at the location with a different identity."""

    code = "DUPLICATE_LOT"

    def __init__(self, *, product_id, location_id, batch_reference: str, existing_batch_id=None):
        self.product_id = product_id
        self.location_id = location_id
        self.batch_reference = batch_reference
        self.existing_batch_id = existing_batch_id
        super().__init__(
            f"Lot '{batch_reference}' already exists for product {product_id} at location "
            f"{location_id} with a different cost, price or expiration."
        )

    def details(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "location_id": str(self.location_id),
            "batch_reference": self.batch_reference,
            "existing_batch_id": self.existing_batch_id,
        }


class LedgerError(InventoryError):
    """Raised on any attempt to bypass the append-only ledger contract."""

    code = "LEDGER_VIOLATION"


class TransferError(InventoryError):
    """Base exception for transfer workflow failures."""

    code = "TRANSFER_FAILED"


class InvalidTransferState(TransferError):
    code = "INVALID_TRANSFER_STATE"


class TransferPartialFailure(TransferError):
    """
    One or more lines of a transfer failed.

    `failures` is a list of LineFailure-like objects (line, error). In the default
    all-or-nothing mode nothing was committed; in partial mode only the lines listed
    here were left unmoved.
    """

    code = "TRANSFER_PARTIAL_FAILURE"

    def __init__(self, *, transfer, failures, committed: bool = False):
        self.transfer = transfer
        self.failures = list(failures)
        self.committed = committed
        first = self.failures[0] if self.failures else None
        summary = f"line {first.line_no}: {first.error}" if first else "unknown line"
        super().__init__(
            f"Transfer {getattr(transfer, 'reference_no', transfer)} failed ({summary})"
        )

    def details(self) -> dict:
        return {
            "transfer": getattr(self.transfer, "reference_no", None),
            "committed": self.committed,
            "failures": [f.as_dict() for f in self.failures],
        }


class ReturnError(InventoryError):
    code = "RETURN_FAILED"


class InvalidReturnState(ReturnError):
    code = "INVALID_RETURN_STATE"


class TransferredStockUnavailable(ReturnError):
    """
    A return against a transfer reference needs the transferred units back from the
    destination lot, but that lot no longer holds them (sold or moved on).
    """

    code = "TRANSFERRED_STOCK_UNAVAILABLE"

    def __init__(self, *, transfer_reference: str, batch_id, requested: int, available: int):
        self.transfer_reference = transfer_reference
        self.batch_id = batch_id
        self.requested = int(requested)
        self.available = int(available)
        super().__init__(
            f"Cannot take back {self.requested} unit(s) of '{transfer_reference}' from batch {batch_id}; "
            f"only {self.available} remaining there."
        )

    def details(self) -> dict:
        return {
            "transfer_reference": self.transfer_reference,
            "batch_id": self.batch_id,
            "requested": self.requested,
            "available": self.available,
        }


class ReturnQuantityExceeded(ReturnError):
    code = "RETURN_QUANTITY_EXCEEDED"

    def __init__(self, *, original_reference: str, requested: int, returnable: int):
        self.original_reference = original_reference
        self.requested = int(requested)
        self.returnable = int(returnable)
        super().__init__(
            f"Cannot return {self.requested} unit(s) against '{original_reference}'; "
            f"only {self.returnable} remain returnable."
        )

    def details(self) -> dict:
        return {
            "original_reference": self.original_reference,
            "requested": self.requested,
            "returnable": self.returnable,
        }


class InventoryWarning(UserWarning):
    """Non-fatal conditions that downstream reporting should flag."""


class ProvenanceLost(InventoryWarning):
    """
    A returned quantity could not be tied back to its original batch lineage and was
    restocked into a fresh return-sourced lot at the product's default cost/price.
    Carried on the return result; never raised.
    """

    code = "PROVENANCE_LOST"

    def __init__(self, *, product_id, original_reference: str, quantity: int, batch_id=None):
        self.product_id = product_id
        self.original_reference = original_reference
        self.quantity = int(quantity)
        self.batch_id = batch_id
        super().__init__(
            f"No batch lineage found for '{original_reference}'; {self.quantity} unit(s) "
            f"restocked into a new return lot."
        )

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": str(self),
            "details": {
                "product_id": str(self.product_id),
                "original_reference": self.original_reference,
                "quantity": self.quantity,
                "batch_id": self.batch_id,
            },
        }
