"""
Tests for core models, managers and email helpers.
"""
import uuid
from unittest.mock import patch
from django.contrib.auth.models import AnonymousUser
from django.core import mail
from django.db import transaction
from django.test import TestCase
from core.email import (
    EmailDeliveryError,
    get_from_address,
    get_from_header,
    is_public_mailbox,
    send_email,
    sender_local_part,
)
from core.factories import BusinessFactory, UserFactory
from core.managers import parse_uuid
from core.models import Business
from core.tenancy import set_tenant_context


class BusinessManagerTest(TestCase):

    def setUp(self):
        """Set up test data."""
        self.owner = UserFactory()
        self.business = BusinessFactory(owner=self.owner)

    def test_for_owner(self):
        BusinessFactory()
        BusinessFactory(owner=self.owner, is_active=False)

        self.assertEqual(list(Business.objects.for_owner(self.owner)), [self.business])
        self.assertFalse(Business.objects.for_owner(AnonymousUser()).exists())
        self.assertFalse(Business.objects.for_owner(None).exists())

    def test_by_public_id(self):
        self.assertEqual(Business.objects.by_public_id(str(self.business.uuid)).get(), self.business)
        self.assertFalse(Business.objects.by_public_id('not-a-uuid').exists())
        self.assertFalse(Business.objects.by_public_id(uuid.uuid4()).exists())

    def test_is_owned_by(self):
        self.assertTrue(self.business.is_owned_by(self.owner))
        self.assertFalse(self.business.is_owned_by(UserFactory()))
        self.assertFalse(self.business.is_owned_by(AnonymousUser()))

    def test_email_copy_defaults(self):
        self.assertEqual(self.business.get_email_subject(), Business.DEFAULT_EMAIL_SUBJECT)
        self.business.email_body = 'Custom body'
        self.assertEqual(self.business.get_email_body(), 'Custom body')

    def test_parse_uuid(self):
        value = uuid.uuid4()
        self.assertEqual(parse_uuid(value), value)
        self.assertEqual(parse_uuid(f' {value} '), value)
        self.assertIsNone(parse_uuid(None))
        self.assertIsNone(parse_uuid('test'))


class SenderAddressTest(TestCase):

    def test_public_mailboxes(self):
        self.assertTrue(is_public_mailbox('someone@Gmail.com'))
        self.assertTrue(is_public_mailbox(''))
        self.assertTrue(is_public_mailbox(None))
        self.assertFalse(is_public_mailbox('hello@acme.test'))

    def test_sender_local_part(self):
        self.assertEqual(sender_local_part('Acme_Cleaning!'), 'acme-cleaning')
        self.assertIsNone(sender_local_part(''))
        self.assertIsNone(sender_local_part('***'))

    def test_business_mailbox_preferred(self):
        business = BusinessFactory.build(email='hello@acme.test', slug='acme')
        self.assertEqual(get_from_address(business), 'hello@acme.test')

    def test_slug_fallback(self):
        business = BusinessFactory.build(email='acme@gmail.com', slug='acme')
        self.assertEqual(get_from_address(business), 'acme@reminders.upvoice.test')

    def test_default_fallback(self):
        business = BusinessFactory.build(email='', slug='')
        self.assertEqual(get_from_address(business), 'noreply@upvoice.test')

    def test_from_header_strips_quotes(self):
        business = BusinessFactory.build(name='The "Best" Bakery', email='hi@bakery.test')
        self.assertEqual(get_from_header(business), '"The Best Bakery" <hi@bakery.test>')


class SendEmailTest(TestCase):

    def test_send(self):
        message_id = send_email('Subject', 'Body', ['to@example.com'], html_message='<p>Body</p>')

        self.assertEqual(len(mail.outbox), 1)
        sent = mail.outbox[0]
        self.assertEqual(sent.extra_headers['Message-ID'], message_id)
        self.assertEqual(sent.from_email, 'noreply@upvoice.test')
        self.assertTrue(message_id.endswith('@reminders.upvoice.test>'))

    def test_rejected_send(self):
        with patch('core.email.EmailMultiAlternatives.send', return_value=0):
            with self.assertRaises(EmailDeliveryError):
                send_email('Subject', 'Body', ['to@example.com'])


class TenantContextTest(TestCase):

    def test_noop_on_sqlite(self):
        with transaction.atomic():
            self.assertFalse(set_tenant_context(1))


class HealthCheckTest(TestCase):

    def test_health(self):
        response = self.client.get('/health/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')
