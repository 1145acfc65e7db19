# inventory/serializers/commands.py

"""
Command serializers for inventory actions.

These serializers do NOT touch the database beyond resolving primary keys.
They only validate input; the services do the work.
"""

from rest_framework import serializers

from inventory.services.batch_store import AllocationStrategy
from locations.models import Location
from products.models import Product


class ReceiveStockCommandSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_active=True))
    location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.filter(is_active=True))
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    selling_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    expiration_date = serializers.DateField(required=False, allow_null=True)
    batch_reference = serializers.CharField(required=False, allow_blank=True, max_length=128)
    reference_no = serializers.CharField(required=False, allow_blank=True, max_length=64)
    note = serializers.CharField(required=False, allow_blank=True, max_length=255)


class AdjustBatchCommandSerializer(serializers.Serializer):
    delta = serializers.IntegerField()
    reason = serializers.CharField(max_length=255)

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError("delta cannot be 0")
        return value


class AllocationQuerySerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.all())
    quantity = serializers.IntegerField(min_value=0)
    strategy = serializers.ChoiceField(choices=AllocationStrategy.choices, required=False)


class SellCommandSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_active=True))
    location = serializers.PrimaryKeyRelatedField(queryset=Location.objects.filter(is_active=True))
    quantity = serializers.IntegerField(min_value=1)
    reference_no = serializers.CharField(required=False, allow_blank=True, max_length=64)
