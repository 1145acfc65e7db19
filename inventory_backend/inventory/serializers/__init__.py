from .batch import BatchSerializer
from .commands import (
    AdjustBatchCommandSerializer,
    AllocationQuerySerializer,
    ReceiveStockCommandSerializer,
    SellCommandSerializer,
)
from .movement import StockMovementSerializer

__all__ = [
    "AdjustBatchCommandSerializer",
    "AllocationQuerySerializer",
    "BatchSerializer",
    "ReceiveStockCommandSerializer",
    "SellCommandSerializer",
    "StockMovementSerializer",
]
