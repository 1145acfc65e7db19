from .stock_return import StockReturnViewSet

__all__ = ["StockReturnViewSet"]
