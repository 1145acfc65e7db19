from .stock_return import ProcessReturnCommandSerializer, RejectReturnCommandSerializer, StockReturnSerializer

__all__ = ["ProcessReturnCommandSerializer", "RejectReturnCommandSerializer", "StockReturnSerializer"]
