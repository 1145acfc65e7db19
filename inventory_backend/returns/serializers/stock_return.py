# returns/serializers/stock_return.py

from rest_framework import serializers

from locations.models import Location
from products.models import Product
from returns.models import StockReturn


class StockReturnSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = StockReturn
        fields = [
            "id",
            "reference_no",
            "original_reference",
            "product",
            "product_name",
            "location",
            "quantity",
            "reason",
            "status",
            "provenance_lost",
            "performed_by",
            "created_at",
            "approved_by",
            "approved_at",
            "rejected_by",
            "rejected_at",
            "rejection_reason",
        ]
        read_only_fields = fields


class ProcessReturnCommandSerializer(serializers.Serializer):
    """
    Command serializer for return requests. Validates input only.

    approve=true records and approves the return in one step (staff only).
    """

    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    original_reference = serializers.CharField(max_length=64)
    return_reference = serializers.CharField(required=False, allow_blank=True, max_length=64)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)
    approve = serializers.BooleanField(required=False, default=False)


class RejectReturnCommandSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
