"""
Factory definitions for reviews models
"""
import factory
from factory.django import DjangoModelFactory
from clients.factories import ClientFactory
from .models import Review


class ReviewFactory(DjangoModelFactory):
    """Factory for a client's review (happy by default)"""

    class Meta:
        model = Review

    client = factory.SubFactory(ClientFactory)
    business = factory.LazyAttribute(lambda obj: obj.client.business)
    review = factory.Faker('paragraph')
    stars = None
    happy = True
