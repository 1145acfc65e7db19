from .batch import BatchViewSet
from .movement import StockMovementViewSet
from .operations import allocation_preview, sell, stock_levels

__all__ = [
    "BatchViewSet",
    "StockMovementViewSet",
    "allocation_preview",
    "sell",
    "stock_levels",
]
