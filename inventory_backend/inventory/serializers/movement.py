# inventory/serializers/movement.py

from rest_framework import serializers

from inventory.models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    batch_reference = serializers.CharField(source="batch.batch_reference", read_only=True)
    total_cost = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    performed_by = serializers.CharField(source="performed_by_id", read_only=True, allow_null=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "occurred_at",
            "movement_type",
            "product",
            "location",
            "batch",
            "batch_reference",
            "quantity",
            "remaining_after",
            "reference_no",
            "unit_cost_snapshot",
            "total_cost",
            "note",
            "performed_by",
        ]
        read_only_fields = fields
