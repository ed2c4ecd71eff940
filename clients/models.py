import uuid
from django.contrib.auth.models import User
from django.db import models
from django.db.models import Q
from core.models import TimeStampedModel, Business
from core.managers import BusinessScopedManager


class Client(TimeStampedModel):
    """Customer of a business who can be asked for a review"""

    SENTIMENT_UNREVIEWED = 'unreviewed'
    SENTIMENT_GOOD = 'good'
    SENTIMENT_BAD = 'bad'

    SENTIMENT_CHOICES = [
        (SENTIMENT_UNREVIEWED, 'Unreviewed'),
        (SENTIMENT_GOOD, 'Good'),
        (SENTIMENT_BAD, 'Bad'),
    ]

    # Public UUID for external references (API, URLs, review links)
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
        related_name='clients'
    )
    name = models.CharField(max_length=255, blank=True)
    email = models.EmailField(blank=True)
    sentiment = models.CharField(
        max_length=20,
        choices=SENTIMENT_CHOICES,
        default=SENTIMENT_UNREVIEWED,
        help_text='Denormalized from the client\'s review'
    )

    objects = BusinessScopedManager()

    class Meta:
        db_table = 'clients'
        ordering = ['name']

    def __str__(self):
        return f"{self.name or 'Customer'} ({self.email})"

    @property
    def display_name(self):
        return (self.name or '').strip() or 'Customer'


class ClientAction(models.Model):
    """
    Append-only ledger of what a client has done for a business.

    The client's state is derived from which actions exist; nothing here is
    ever updated in place.
    """

    class Action(models.TextChoices):
        INVITED = 'invited', 'Invitation email sent'
        CLICKED = 'clicked', 'Review link clicked'
        SUBMITTED = 'submitted', 'Review submitted'

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name='client_actions'
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.CASCADE,
        related_name='actions'
    )
    # NULL means the public, unauthenticated recipient
    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='client_actions'
    )
    action = models.CharField(max_length=20, choices=Action.choices)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = BusinessScopedManager()

    class Meta:
        db_table = 'client_actions'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['business', 'client', 'action'], name='client_actions_lookup_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['business', 'client'],
                condition=Q(action='submitted'),
                name='client_actions_one_submission',
            ),
        ]

    def __str__(self):
        return f"{self.client} - {self.action} at {self.created_at}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Client actions are append-only")
        super().save(*args, **kwargs)
