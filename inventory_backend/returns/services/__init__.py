from .return_processor import (
    ReturnResult,
    approve_return,
    process_return,
    reject_return,
    request_return,
    returnable_quantity,
)

__all__ = [
    "ReturnResult",
    "approve_return",
    "process_return",
    "reject_return",
    "request_return",
    "returnable_quantity",
]
