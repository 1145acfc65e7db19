from .commands import (
    TransferCreateCommandSerializer,
    TransferExecuteCommandSerializer,
    TransferLineInputSerializer,
    TransferredBatchSerializer,
)
from .transfer import TransferAllocationSerializer, TransferDetailSerializer, TransferHeaderSerializer

__all__ = [
    "TransferAllocationSerializer",
    "TransferCreateCommandSerializer",
    "TransferDetailSerializer",
    "TransferExecuteCommandSerializer",
    "TransferHeaderSerializer",
    "TransferLineInputSerializer",
    "TransferredBatchSerializer",
]
