"""
Factory definitions for clients models
"""
import factory
from factory.django import DjangoModelFactory
from core.factories import BusinessFactory
from .models import Client, ClientAction


class ClientFactory(DjangoModelFactory):
    """Factory for creating clients of a business"""

    class Meta:
        model = Client

    business = factory.SubFactory(BusinessFactory)
    name = factory.Faker('name')
    email = factory.Sequence(lambda n: f'client{n}@example.com')
    sentiment = Client.SENTIMENT_UNREVIEWED


class ClientActionFactory(DjangoModelFactory):
    """Factory for ledger events (defaults to an invitation)"""

    class Meta:
        model = ClientAction

    client = factory.SubFactory(ClientFactory)
    business = factory.LazyAttribute(lambda obj: obj.client.business)
    actor = None
    action = ClientAction.Action.INVITED
    meta = factory.LazyFunction(dict)
