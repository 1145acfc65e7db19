# transfers/serializers/commands.py

"""
Command serializers for the transfer workflow.

They only validate input for the create / execute actions.
"""

from rest_framework import serializers

from inventory.models import Batch
from inventory.services.batch_store import AllocationStrategy
from locations.models import Location
from products.models import Product


class TransferLineInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)


class TransferCreateCommandSerializer(serializers.Serializer):
    source_location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.all())
    destination_location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.all())
    reference_no = serializers.CharField(required=False, allow_blank=True, max_length=64)
    lines = TransferLineInputSerializer(many=True)
    execute = serializers.BooleanField(required=False, default=False)
    partial = serializers.BooleanField(required=False, default=False)

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required")
        return value

    def validate(self, attrs):
        if attrs["source_location"].pk == attrs["destination_location"].pk:
            raise serializers.ValidationError(
                {"destination_location": "Source and destination locations must differ"}
            )
        return attrs


class TransferExecuteCommandSerializer(serializers.Serializer):
    partial = serializers.BooleanField(required=False, default=False)
    strategy = serializers.ChoiceField(choices=AllocationStrategy.choices, required=False)


class TransferredBatchSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    source_location = serializers.CharField(source="source_batch.location_id", read_only=True, allow_null=True)
    transfer_reference = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = Batch
        fields = [
            "id",
            "product",
            "product_name",
            "batch_reference",
            "available_quantity",
            "unit_cost",
            "selling_price",
            "expiration_date",
            "entry_date",
            "source_batch",
            "source_location",
            "transfer_reference",
        ]
        read_only_fields = fields
