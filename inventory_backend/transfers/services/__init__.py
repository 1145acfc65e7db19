from .transfer_coordinator import (
    LineFailure,
    TransferResult,
    approve_transfer,
    create_transfer,
    execute_transfer,
    transfer_history,
    transfer_stock,
    transferred_batches,
)

__all__ = [
    "LineFailure",
    "TransferResult",
    "approve_transfer",
    "create_transfer",
    "execute_transfer",
    "transfer_history",
    "transfer_stock",
    "transferred_batches",
]
