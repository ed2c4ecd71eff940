"""
Custom model managers for business-scoped multitenancy.

These managers enforce business-level data isolation by default.
"""
import uuid
from django.db import models


def parse_uuid(value):
    """Return a UUID for value, or None if it is not UUID-shaped."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        return None


class BusinessQuerySet(models.QuerySet):
    """QuerySet for Business with ownership filtering"""

    def for_owner(self, user):
        """
        Businesses owned by user.

        Args:
            user: User instance (anonymous users get nothing)

        Returns:
            QuerySet of active businesses owned by user
        """
        if user is None or not user.is_authenticated:
            return self.none()
        return self.filter(owner=user, is_active=True)

    def by_public_id(self, public_id):
        """Filter by public UUID; malformed ids match nothing."""
        parsed = parse_uuid(public_id)
        if parsed is None:
            return self.none()
        return self.filter(uuid=parsed)


class BusinessManager(models.Manager):
    """
    Manager for Business.

    Usage:
        Business.objects.for_owner(user)         # Businesses the user owns
        Business.objects.by_public_id(uuid_str)  # Lookup by public UUID
    """

    def get_queryset(self):
        return BusinessQuerySet(self.model, using=self._db)

    def for_owner(self, user):
        return self.get_queryset().for_owner(user)

    def by_public_id(self, public_id):
        return self.get_queryset().by_public_id(public_id)


class BusinessScopedQuerySet(models.QuerySet):
    """QuerySet for models that carry a `business` foreign key"""

    def for_business(self, business):
        """
        Filter by business.

        Args:
            business: Business instance or None

        Returns:
            QuerySet filtered by business (or empty if business is None)
        """
        if business is None:
            return self.none()
        return self.filter(business=business)


class BusinessScopedManager(models.Manager):
    """
    Manager that filters querysets by business.

    Usage:
        Model.objects.for_business(business)  # Returns business-scoped queryset
        Model.objects.all()                   # Returns all (use with caution)
    """

    def get_queryset(self):
        return BusinessScopedQuerySet(self.model, using=self._db)

    def for_business(self, business):
        return self.get_queryset().for_business(business)
