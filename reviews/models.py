import uuid
from django.db import models
from core.models import TimeStampedModel, Business
from core.managers import BusinessScopedManager
from clients.models import Client


class Review(TimeStampedModel):
    """A client's review of a business, left through their review link"""

    uuid = models.UUIDField(
        default=uuid.uuid4,
        unique=True,
        editable=False,
        db_index=True,
        help_text="Public identifier for API and URL usage (non-enumerable)"
    )
    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name='reviews'
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name='reviews'
    )
    review = models.TextField()
    stars = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        null=True,
        blank=True,
        help_text='0.0 - 5.0, optional'
    )
    happy = models.BooleanField(help_text='Submitted through the "good" link')

    objects = BusinessScopedManager()

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['business', 'client'],
                name='reviews_one_per_client',
            ),
        ]

    def __str__(self):
        return f"{self.client.display_name} -> {self.business.name} ({'good' if self.happy else 'bad'})"
