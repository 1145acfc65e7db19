# inventory/serializers/batch.py

from rest_framework import serializers

from inventory.models import Batch


class BatchSerializer(serializers.ModelSerializer):
    """
    Read serializer for Batch rows.

    Batches are never created or edited through this serializer: receiving,
    adjustments, sales and transfers go through the inventory services.
    """

    product_name = serializers.CharField(source="product.name", read_only=True)
    location_name = serializers.CharField(source="location.name", read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Batch
        fields = [
            "id",
            "product",
            "product_name",
            "location",
            "location_name",
            "batch_reference",
            "available_quantity",
            "unit_cost",
            "selling_price",
            "expiration_date",
            "is_expired",
            "entry_date",
            "origin",
            "source_batch",
            "created_at",
        ]
        read_only_fields = fields
