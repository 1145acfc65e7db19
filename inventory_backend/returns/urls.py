# returns/urls.py

"""
RETURNS URLS

Registered under /api/returns/
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from returns.views import StockReturnViewSet

router = SimpleRouter()

router.register(r"", StockReturnViewSet, basename="returns")

urlpatterns = [
    path("", include(router.urls)),
]
