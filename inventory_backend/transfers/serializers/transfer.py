# transfers/serializers/transfer.py

from rest_framework import serializers

from transfers.models import TransferAllocation, TransferDetail, TransferHeader


class TransferAllocationSerializer(serializers.ModelSerializer):
    batch_reference = serializers.CharField(source="source_batch.batch_reference", read_only=True)

    class Meta:
        model = TransferAllocation
        fields = [
            "id",
            "source_batch",
            "destination_batch",
            "batch_reference",
            "quantity",
            "unit_cost",
            "selling_price",
            "expiration_date",
        ]
        read_only_fields = fields


class TransferDetailSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    allocations = TransferAllocationSerializer(many=True, read_only=True)

    class Meta:
        model = TransferDetail
        fields = [
            "line_no",
            "product",
            "product_name",
            "quantity",
            "status",
            "failure_reason",
            "allocations",
        ]
        read_only_fields = fields


class TransferHeaderSerializer(serializers.ModelSerializer):
    lines = TransferDetailSerializer(many=True, read_only=True)

    class Meta:
        model = TransferHeader
        fields = [
            "id",
            "reference_no",
            "source_location",
            "destination_location",
            "status",
            "requested_by",
            "created_at",
            "approved_at",
            "completed_at",
            "last_error",
            "lines",
        ]
        read_only_fields = fields
