# inventory/views/movement.py

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from inventory.models import StockMovement
from inventory.serializers import StockMovementSerializer


class StockMovementViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only ledger access for reporting and audit.

    Filters: product, location, batch, movement_type, reference_no,
    occurred_at__gte / occurred_at__lte.
    """

    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = {
        "product": ["exact"],
        "location": ["exact"],
        "batch": ["exact"],
        "movement_type": ["exact"],
        "reference_no": ["exact"],
        "occurred_at": ["gte", "lte"],
    }

    def get_queryset(self):
        return StockMovement.objects.select_related("batch").order_by("-occurred_at", "-id")
