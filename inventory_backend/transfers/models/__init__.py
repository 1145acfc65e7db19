# transfers/models/__init__.py

from .transfer import TransferAllocation, TransferDetail, TransferHeader

__all__ = ["TransferAllocation", "TransferDetail", "TransferHeader"]
