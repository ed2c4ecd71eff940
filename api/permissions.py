"""
Custom permission classes for API endpoints.
"""
from rest_framework.permissions import BasePermission


class IsBusinessOwner(BasePermission):
    """
    Object-level check that the business (or the object's business) belongs
    to the requesting user.
    """

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        business = getattr(obj, "business", obj)
        return business.is_owned_by(request.user)
