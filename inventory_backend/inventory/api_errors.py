# inventory/api_errors.py

"""
API ERROR NORMALIZATION

Canonical error envelope shared by the inventory, transfers and returns views:

    {"error": {"code": "...", "message": "...", "details": {...}}}
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.response import Response

from inventory.exceptions import (
    DuplicateLot,
    InsufficientBatchQuantity,
    InsufficientStock,
    InvalidReturnState,
    InvalidTransferState,
    InventoryError,
    LedgerError,
    ReturnQuantityExceeded,
    TransferPartialFailure,
    TransferredStockUnavailable,
)

# Conflicts with current stock or workflow state -> 409, everything else -> 400
STATUS_BY_ERROR = (
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (InsufficientBatchQuantity, status.HTTP_409_CONFLICT),
    (DuplicateLot, status.HTTP_409_CONFLICT),
    (InvalidTransferState, status.HTTP_409_CONFLICT),
    (TransferPartialFailure, status.HTTP_409_CONFLICT),
    (InvalidReturnState, status.HTTP_409_CONFLICT),
    (ReturnQuantityExceeded, status.HTTP_409_CONFLICT),
    (TransferredStockUnavailable, status.HTTP_409_CONFLICT),
    (LedgerError, status.HTTP_400_BAD_REQUEST),
)


def error_response(*, code: str, message: str, http_status: int, details: dict | None = None):
    return Response(
        {"error": {"code": code, "message": message, "details": details or {}}},
        status=http_status,
    )


def inventory_error_response(exc: InventoryError):
    http_status = status.HTTP_400_BAD_REQUEST
    for error_cls, mapped in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            http_status = mapped
            break

    payload = exc.as_dict()
    return error_response(
        code=payload["code"],
        message=payload["message"],
        details=payload["details"],
        http_status=http_status,
    )


def validation_error_response(exc: ValidationError):
    if hasattr(exc, "message_dict"):
        details = exc.message_dict
        message = "; ".join(f"{k}: {', '.join(v)}" for k, v in details.items())
    else:
        details = {}
        message = "; ".join(exc.messages)

    return error_response(
        code="VALIDATION_ERROR",
        message=message,
        details=details,
        http_status=status.HTTP_400_BAD_REQUEST,
    )


def not_found_response(message: str):
    return error_response(code="NOT_FOUND", message=message, http_status=status.HTTP_404_NOT_FOUND)
