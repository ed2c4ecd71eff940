"""
Factory definitions for core models
"""
import factory
from factory.django import DjangoModelFactory
from django.contrib.auth.models import User
from .models import Business


class UserFactory(DjangoModelFactory):
    """Factory for creating test users"""

    class Meta:
        model = User
        django_get_or_create = ('username',)

    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.LazyAttribute(lambda obj: f'{obj.username}@test.local')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = factory.django.Password('owner-pass-123')


class BusinessFactory(DjangoModelFactory):
    """Factory for creating test businesses"""

    class Meta:
        model = Business

    owner = factory.SubFactory(UserFactory)
    name = factory.Sequence(lambda n: f'Test Business {n}')
    slug = factory.Sequence(lambda n: f'test-business-{n}')
    email = factory.LazyAttribute(lambda obj: f'hello@{obj.slug}.test')
    description = 'We clean windows.'
    google_review_link = 'https://g.page/r/test-business/review'
    email_subject = ''
    email_body = ''
    is_active = True
