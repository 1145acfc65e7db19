# returns/views/stock_return.py

from django.core.exceptions import ValidationError
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from inventory.api_errors import error_response, inventory_error_response, validation_error_response
from inventory.exceptions import InventoryError
from returns.models import StockReturn
from returns.serializers import (
    ProcessReturnCommandSerializer,
    RejectReturnCommandSerializer,
    StockReturnSerializer,
)
from returns.services import approve_return, process_return, reject_return, request_return


class StockReturnViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Returns ViewSet.

    - list/retrieve: returns (filter: original_reference, product, location, status,
      provenance_lost)
    - create: record a pending return (approve=true restocks immediately, staff only)
    - {id}/approve/: restock a pending return (staff only)
    - {id}/reject/: close a pending return with a reason (staff only)
    """

    queryset = StockReturn.objects.select_related("product", "location")
    serializer_class = StockReturnSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["original_reference", "product", "location", "status", "provenance_lost"]

    def get_serializer_class(self):
        if self.action == "create":
            return ProcessReturnCommandSerializer
        if self.action == "reject":
            return RejectReturnCommandSerializer
        return StockReturnSerializer

    @staticmethod
    def _render_result(result, http_status):
        return Response(
            {
                **StockReturnSerializer(result.stock_return).data,
                "provenance_lost": result.provenance_lost,
                "warnings": [w.as_dict() for w in result.warnings],
                "batches": [m.batch_id for m in result.movements],
            },
            status=http_status,
        )

    def create(self, request, *args, **kwargs):
        command = ProcessReturnCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        v = command.validated_data

        if v["approve"] and not request.user.is_staff:
            return error_response(
                code="FORBIDDEN",
                message="Only staff can approve returns",
                http_status=status.HTTP_403_FORBIDDEN,
            )

        service = process_return if v["approve"] else request_return
        try:
            outcome = service(
                product=v["product"],
                location=v["location"],
                quantity=v["quantity"],
                original_reference=v["original_reference"],
                return_reference=v.get("return_reference"),
                reason=v.get("reason", ""),
                user=request.user,
            )
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)

        if v["approve"]:
            return self._render_result(outcome, status.HTTP_201_CREATED)
        return Response(StockReturnSerializer(outcome).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="approve", permission_classes=[IsAdminUser])
    def approve(self, request, pk=None):
        stock_return = self.get_object()
        try:
            result = approve_return(stock_return=stock_return, user=request.user)
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)
        return self._render_result(result, status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="reject", permission_classes=[IsAdminUser])
    def reject(self, request, pk=None):
        stock_return = self.get_object()
        command = RejectReturnCommandSerializer(data=request.data)
        command.is_valid(raise_exception=True)
        try:
            rejected = reject_return(
                stock_return=stock_return,
                reason=command.validated_data["reason"],
                user=request.user,
            )
        except InventoryError as exc:
            return inventory_error_response(exc)
        except ValidationError as exc:
            return validation_error_response(exc)
        return Response(StockReturnSerializer(rejected).data)
