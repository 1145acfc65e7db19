# inventory/urls.py

"""
INVENTORY URLS

Registered under /api/inventory/:
- batches/                      list / retrieve / receive / adjust / expire
- movements/                    read-only ledger
- stock-levels/                 derived quantities
- allocation-preview/           FIFO/FEFO plan without side effects
- sell/                         POS sale line
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.views import (
    BatchViewSet,
    StockMovementViewSet,
    allocation_preview,
    sell,
    stock_levels,
)

router = DefaultRouter()

router.register(r"batches", BatchViewSet, basename="batches")
router.register(r"movements", StockMovementViewSet, basename="movements")

urlpatterns = [
    path("stock-levels/", stock_levels, name="stock-levels"),
    path("allocation-preview/", allocation_preview, name="allocation-preview"),
    path("sell/", sell, name="sell"),
    path("", include(router.urls)),
]
