"""
API URL configuration.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)

from .viewsets import BusinessViewSet, ClientActionViewSet

router = DefaultRouter()
router.register(r"businesses", BusinessViewSet, basename="business")

app_name = "api"

urlpatterns = [
    path("", include(router.urls)),
    path(
        "businesses/<uuid:business_uuid>/clients/<uuid:client_uuid>/actions/",
        ClientActionViewSet.as_view({"get": "list"}),
        name="client-actions",
    ),
    # OpenAPI schema
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # API documentation UIs
    path(
        "docs/",
        SpectacularSwaggerView.as_view(url_name="api:schema"),
        name="swagger-ui",
    ),
    path("redoc/", SpectacularRedocView.as_view(url_name="api:schema"), name="redoc"),
]
