# inventory/views/batch.py

"""
BATCH VIEWSET

Read access to batches plus the controlled stock operations that create or change
them: receive / adjust / expire. Quantities are never editable directly.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.api_errors import inventory_error_response, validation_error_response
from inventory.exceptions import InventoryError
from inventory.models import Batch
from inventory.serializers import (
    AdjustBatchCommandSerializer,
    BatchSerializer,
    ReceiveStockCommandSerializer,
)
from inventory.services import adjust_batch, expire_batch, receive_stock


class BatchViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = BatchSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["product", "location", "origin"]

    def get_queryset(self):
        qs = Batch.objects.select_related("product", "location")

        in_stock = (self.request.query_params.get("in_stock") or "").strip().lower()
        if in_stock in ("1", "true", "yes"):
            qs = qs.filter(available_quantity__gt=0)

        return qs.order_by("entry_date", "id")

    def get_serializer_class(self):
        if self.action == "receive":
            return ReceiveStockCommandSerializer
        if self.action == "adjust":
            return AdjustBatchCommandSerializer
        return BatchSerializer

    @action(detail=False, methods=["post"], url_path="receive")
    def receive(self, request):
        """
        POST /api/inventory/batches/receive/

        Creates a new lot, or tops up the lot whose identity matches exactly.
        """
        command = ReceiveStockCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        v = command.validated_data

        try:
            result = receive_stock(
                product=v["product"],
                location=v["location"],
                quantity=v["quantity"],
                unit_cost=v["unit_cost"],
                selling_price=v.get("selling_price"),
                expiration_date=v.get("expiration_date"),
                batch_reference=v.get("batch_reference"),
                reference_no=v.get("reference_no"),
                note=v.get("note", ""),
                user=request.user,
            )
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)

        result.batch.refresh_from_db()
        return Response(
            {
                "created": result.created,
                "reference_no": result.movement.reference_no,
                "batch": BatchSerializer(result.batch).data,
            },
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request, pk=None):
        batch = self.get_object()
        command = AdjustBatchCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)

        try:
            adjust_batch(
                batch=batch,
                delta=command.validated_data["delta"],
                reason=command.validated_data["reason"],
                user=request.user,
            )
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)

        batch.refresh_from_db()
        return Response(BatchSerializer(batch).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="expire")
    def expire(self, request, pk=None):
        batch = self.get_object()

        try:
            expire_batch(batch=batch, user=request.user)
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)

        batch.refresh_from_db()
        return Response(BatchSerializer(batch).data, status=status.HTTP_200_OK)
