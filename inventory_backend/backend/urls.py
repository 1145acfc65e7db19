# backend/urls.py
"""
Project URLs. Everything lives under /api/ except the admin and the docs redirect.

    /api/inventory/   batches, movements, stock levels, allocation preview, sell
    /api/transfers/   transfer workflow (create / approve / execute)
    /api/returns/     customer returns
    /api/health/      public DB connectivity check
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connection
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import OpenApiResponse, extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

LEDGER_MODULES = {
    "inventory": "inventory.urls",
    "transfers": "transfers.urls",
    "returns": "returns.urls",
}


@extend_schema(responses={200: OpenApiResponse(description="Index of API entrypoints")})
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": "Inventory Ledger API is running",
            "auth": {"jwt_create": "/api/auth/jwt/create/", "jwt_refresh": "/api/auth/jwt/refresh/"},
            "docs": {"swagger": "/api/docs/", "schema": "/api/schema/"},
            "modules": {name: f"/api/{name}/" for name in LEDGER_MODULES},
        }
    )


@extend_schema(
    responses={
        200: OpenApiResponse(description="Database reachable"),
        503: OpenApiResponse(description="Database unreachable"),
    }
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except OperationalError as exc:
        return Response({"status": "degraded", "db": "down", "error": str(exc)}, status=503)
    return Response({"status": "ok", "db": "ok"})


admin_path = settings.ADMIN_PATH if settings.ADMIN_PATH.endswith("/") else f"{settings.ADMIN_PATH}/"

api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
] + [path(f"{name}/", include(module)) for name, module in LEDGER_MODULES.items()]

urlpatterns = [
    path(admin_path, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
