from .transfer import TransferViewSet

__all__ = ["TransferViewSet"]
