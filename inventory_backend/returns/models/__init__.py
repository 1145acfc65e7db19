# returns/models/__init__.py

from .stock_return import StockReturn

__all__ = ["StockReturn"]
