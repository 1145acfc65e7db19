# inventory/models/__init__.py

from .batch import Batch
from .stock_movement import StockMovement

__all__ = ["Batch", "StockMovement"]
