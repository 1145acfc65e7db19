from .adjustments import adjust_batch, expire_batch, write_off_stock
from .allocator import AllocationPlan, PlanLine, allocate
from .batch_store import AllocationStrategy
from .consumption import ConsumptionResult, consume_stock, sell_lines, sell_stock
from .ledger import record_movement, verify_ledger
from .receiving import ReceiptResult, receive_stock
from .stock_levels import available_quantity, location_stock_summary, stock_by_location

__all__ = [
    "AllocationPlan",
    "AllocationStrategy",
    "ConsumptionResult",
    "PlanLine",
    "ReceiptResult",
    "adjust_batch",
    "allocate",
    "available_quantity",
    "consume_stock",
    "expire_batch",
    "location_stock_summary",
    "receive_stock",
    "record_movement",
    "sell_lines",
    "sell_stock",
    "stock_by_location",
    "verify_ledger",
    "write_off_stock",
]
