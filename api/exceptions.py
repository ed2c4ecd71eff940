"""
Custom exception handling for API.
"""
from django.http import Http404
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import (
    ValidationError,
    PermissionDenied,
    NotAuthenticated,
    NotFound,
    Throttled,
)
import logging

logger = logging.getLogger("api")


def custom_exception_handler(exc, context):
    """
    Log API errors and stamp a machine-readable error_code on the response.

    Args:
        exc: Exception instance
        context: Context dict with view and request info

    Returns:
        Response object with error details, or None for unhandled exceptions
    """
    response = drf_exception_handler(exc, context)

    if response is None:
        return None

    request = context.get("request")
    view = context.get("view")

    log_data = {
        "status_code": response.status_code,
        "error": str(exc),
        "path": request.path if request else None,
        "method": request.method if request else None,
        "view": view.__class__.__name__ if view else None,
    }

    if response.status_code >= 500:
        logger.error(f"API Server Error: {log_data}")
    elif response.status_code >= 400:
        logger.warning(f"API Client Error: {log_data}")

    if isinstance(response.data, dict):
        if isinstance(exc, ValidationError):
            response.data["error_code"] = "validation_error"
        elif isinstance(exc, NotAuthenticated):
            response.data["error_code"] = "not_authenticated"
        elif isinstance(exc, PermissionDenied):
            response.data["error_code"] = "permission_denied"
        elif isinstance(exc, (NotFound, Http404)):
            response.data["error_code"] = "not_found"
        elif isinstance(exc, Throttled):
            response.data["error_code"] = "throttled"

    return response
