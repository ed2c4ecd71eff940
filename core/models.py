import uuid
from django.contrib.auth.models import User
from django.db import models
from .managers import BusinessManager


class TimeStampedModel(models.Model):
    """Abstract base model with created and updated timestamps"""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Business(TimeStampedModel):
    """Business (tenant) that collects reviews from its clients"""

    DEFAULT_EMAIL_SUBJECT = 'Please leave us a review!'
    DEFAULT_EMAIL_BODY = (
        'We would really appreciate if you left us a review. '
        'Please leave your feedback using the buttons below.'
    )

    # Public UUID for external references (API, URLs, review links)
    uuid = models.UUIDField(
        default=uuid.uuid4,
        unique=True,
        editable=False,
        db_index=True,
        help_text="Public identifier for API and URL usage (non-enumerable)"
    )

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='businesses'
    )
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=64, unique=True)
    email = models.EmailField(blank=True)
    description = models.TextField(blank=True)
    google_review_link = models.URLField(max_length=500, blank=True)

    # Review request email template. "[customer]" is replaced with the client's name.
    email_subject = models.CharField(max_length=255, blank=True)
    email_body = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)

    objects = BusinessManager()

    class Meta:
        db_table = 'businesses'
        ordering = ['name']
        verbose_name_plural = 'businesses'

    def __str__(self):
        return self.name

    def get_email_subject(self):
        return self.email_subject or self.DEFAULT_EMAIL_SUBJECT

    def get_email_body(self):
        return self.email_body or self.DEFAULT_EMAIL_BODY

    def is_owned_by(self, user):
        """Ownership check used by the owner API"""
        return bool(user and user.is_authenticated and self.owner_id == user.pk)
