# transfers/views/transfer.py

"""
TRANSFER VIEWSET

- list / retrieve           transfer headers with lines and batch allocations
- create                    pending transfer (optionally executed immediately)
- {id}/approve/             pending -> approved
- {id}/execute/             allocate + move (all-or-nothing unless partial=true)
- transferred-batches/      batches at a location that arrived by transfer
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.api_errors import (
    error_response,
    inventory_error_response,
    not_found_response,
    validation_error_response,
)
from inventory.exceptions import InventoryError
from locations.models import Location
from transfers.models import TransferHeader
from transfers.serializers import (
    TransferCreateCommandSerializer,
    TransferExecuteCommandSerializer,
    TransferHeaderSerializer,
    TransferredBatchSerializer,
)
from transfers.services import (
    approve_transfer,
    create_transfer,
    execute_transfer,
    transfer_history,
    transferred_batches,
)


class TransferViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = TransferHeaderSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        location_id = (self.request.query_params.get("location") or "").strip() or None
        status_filter = (self.request.query_params.get("status") or "").strip() or None
        return transfer_history(location=location_id, status=status_filter).prefetch_related(
            "lines__allocations", "lines__allocations__source_batch"
        )

    def get_serializer_class(self):
        if self.action == "create":
            return TransferCreateCommandSerializer
        if self.action == "execute":
            return TransferExecuteCommandSerializer
        return TransferHeaderSerializer

    def _render(self, header, http_status=status.HTTP_200_OK, **extra):
        header = self.get_queryset().get(pk=header.pk)
        return Response({**TransferHeaderSerializer(header).data, **extra}, status=http_status)

    def create(self, request, *args, **kwargs):
        command = TransferCreateCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        v = command.validated_data

        try:
            header = create_transfer(
                source_location=v["source_location"],
                destination_location=v["destination_location"],
                lines=v["lines"],
                reference_no=v.get("reference_no"),
                user=request.user,
            )
        except ValidationError as exc:
            return validation_error_response(exc)

        if not v.get("execute"):
            return self._render(header, http_status=status.HTTP_201_CREATED)

        return self._execute(header, partial=v.get("partial", False), strategy=None, created=True)

    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        header = self.get_object()
        try:
            approve_transfer(transfer=header, user=request.user)
        except InventoryError as exc:
            return inventory_error_response(exc)
        return self._render(header)

    @action(detail=True, methods=["post"], url_path="execute")
    def execute(self, request, pk=None):
        header = self.get_object()
        command = TransferExecuteCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        return self._execute(
            header,
            partial=command.validated_data.get("partial", False),
            strategy=command.validated_data.get("strategy"),
        )

    def _execute(self, header, *, partial: bool, strategy, created: bool = False):
        try:
            result = execute_transfer(
                transfer=header,
                user=self.request.user,
                partial=partial,
                strategy=strategy,
            )
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)

        ok_status = status.HTTP_201_CREATED if created else status.HTTP_200_OK
        if result.failures:
            return self._render(
                result.transfer,
                http_status=ok_status if result.allocations else status.HTTP_409_CONFLICT,
                failures=[f.as_dict() for f in result.failures],
            )
        return self._render(result.transfer, http_status=ok_status)

    @action(detail=False, methods=["get"], url_path="transferred-batches")
    def transferred_batch_list(self, request):
        location_id = (request.query_params.get("location") or "").strip()
        if not location_id:
            return error_response(
                code="VALIDATION_ERROR",
                message="location is required",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            location = Location.objects.get(pk=location_id)
        except Location.DoesNotExist:
            return not_found_response("Unknown location")
        except ValidationError as exc:
            return validation_error_response(exc)

        product_id = (request.query_params.get("product") or "").strip() or None
        qs = transferred_batches(location=location, product=product_id)
        data = TransferredBatchSerializer(qs, many=True).data
        return Response({"count": len(data), "results": data})
