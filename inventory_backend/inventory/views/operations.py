# inventory/views/operations.py

"""
Stock levels, allocation preview and the POS "sell" endpoint.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.api_errors import (
    error_response,
    inventory_error_response,
    not_found_response,
    validation_error_response,
)
from inventory.exceptions import InventoryError
from inventory.serializers import AllocationQuerySerializer, SellCommandSerializer
from inventory.services import (
    allocate,
    available_quantity,
    location_stock_summary,
    sell_stock,
    stock_by_location,
)
from locations.models import Location
from products.models import Product


def _plan_lines(plan):
    return [
        {
            "batch_id": line.batch_id,
            "batch_reference": line.batch.batch_reference,
            "quantity": line.quantity,
            "unit_cost": str(line.unit_cost),
            "expiration_date": line.batch.expiration_date,
        }
        for line in plan
    ]


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def stock_levels(request):
    """
    GET /api/inventory/stock-levels/?product=<uuid>[&location=<uuid>]
    GET /api/inventory/stock-levels/?location=<uuid>
    """
    product_id = (request.query_params.get("product") or "").strip()
    location_id = (request.query_params.get("location") or "").strip()

    try:
        if product_id:
            product = Product.objects.get(pk=product_id)
            location = Location.objects.get(pk=location_id) if location_id else None
            return Response(
                {
                    "product": str(product.pk),
                    "location": str(location.pk) if location else None,
                    "quantity": available_quantity(product=product, location=location),
                    "by_location": stock_by_location(product=product),
                }
            )

        if location_id:
            location = Location.objects.get(pk=location_id)
            return Response({"location": str(location.pk), "products": location_stock_summary(location=location)})
    except (Product.DoesNotExist, Location.DoesNotExist):
        return not_found_response("Unknown product or location")
    except ValidationError as exc:
        return validation_error_response(exc)

    return error_response(
        code="VALIDATION_ERROR",
        message="product or location is required",
        http_status=status.HTTP_400_BAD_REQUEST,
    )


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def allocation_preview(request):
    """
    GET /api/inventory/allocation-preview/?product=&location=&quantity=[&strategy=FEFO]

    Non-mutating: takes no locks and reports any shortfall instead of failing.
    """
    query = AllocationQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    v = query.validated_data

    plan = allocate(
        product=v["product"],
        location=v["location"],
        quantity=v["quantity"],
        strategy=v.get("strategy"),
        allow_partial=True,
        lock=False,
    )
    return Response(
        {
            "strategy": plan.strategy,
            "requested": plan.requested,
            "allocated": plan.allocated,
            "shortfall": plan.shortfall,
            "total_cost": str(plan.total_cost),
            "lines": _plan_lines(plan),
        }
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def sell(request):
    """
    POST /api/inventory/sell/

    Consumes stock FIFO for one sale line and returns cost of goods sold per batch.
    """
    command = SellCommandSerializer(data=request.data)
    command.is_valid(raise_exception=True)
    v = command.validated_data

    try:
        result = sell_stock(
            product=v["product"],
            location=v["location"],
            quantity=v["quantity"],
            reference_no=(v.get("reference_no") or "").strip() or None,
            user=request.user,
        )
    except InventoryError as exc:
        return inventory_error_response(exc)
    except ValidationError as exc:
        return validation_error_response(exc)

    return Response(
        {
            "reference_no": result.reference_no,
            "quantity": result.quantity,
            "cost_of_goods": str(result.cost_of_goods),
            "batches": [
                {**row, "unit_cost": str(row["unit_cost"]), "cost": str(row["cost"])}
                for row in result.cost_by_batch()
            ],
        },
        status=status.HTTP_201_CREATED,
    )
