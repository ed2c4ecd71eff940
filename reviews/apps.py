from django.apps import AppConfig


class ReviewsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reviews'

    def ready(self):
        # Raises ImproperlyConfigured when REVIEW_LINK_SECRET is missing
        from .tokens import LinkSigner
        LinkSigner()
