"""
Tests for review request dispatch.
"""
import re
import threading
import time
import uuid
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse
from django.core import mail
from django.test import TestCase
from clients.factories import ClientFactory
from clients.models import ClientAction
from core.email import EmailDeliveryError
from core.factories import BusinessFactory
from reviews.invitations import (
    InvitationDispatcher,
    build_review_links,
    personalise,
    send_test_invitation,
)
from reviews.tokens import LinkSigner

LINK_PATTERN = re.compile(r'https://upvoice\.test/submit-review/\S+')


class FakeSend:
    """Stands in for core.email.send_email; fails for chosen addresses."""

    def __init__(self, fail_for=(), delay=0):
        self.calls = []
        self.fail_for = set(fail_for)
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.lock = threading.Lock()

    def __call__(self, subject, message, recipient_list, html_message=None, from_email=None):
        with self.lock:
            self.calls.append({
                'subject': subject,
                'message': message,
                'to': recipient_list,
                'html': html_message,
                'from': from_email,
            })
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if recipient_list[0] in self.fail_for:
                raise EmailDeliveryError('Mailbox unavailable')
            return f'<{uuid.uuid4().hex}@reminders.upvoice.test>'
        finally:
            with self.lock:
                self.in_flight -= 1

    def call_to(self, address):
        return next(call for call in self.calls if call['to'] == [address])


def invited(client):
    return ClientAction.objects.filter(client=client, action=ClientAction.Action.INVITED)


class InvitationDispatcherTest(TestCase):
    """Bulk sends with per-recipient outcomes."""

    def setUp(self):
        """Set up test data."""
        self.business = BusinessFactory(name='Acme Cleaning', slug='acme-cleaning', email='hello@acme.test')
        self.r1 = ClientFactory(business=self.business, name='Alice', email='alice@example.com')
        self.r2 = ClientFactory(business=self.business, name='Bob', email='bob@example.com')
        self.r3 = ClientFactory(business=self.business, name='Carol', email='carol@example.com')
        self.send = FakeSend(fail_for={'bob@example.com'})

    def dispatch(self, client_ids, **kwargs):
        dispatcher = InvitationDispatcher(
            self.business, actor=self.business.owner, send=self.send, **kwargs
        )
        return dispatcher.dispatch(client_ids)

    def test_failed_send_is_reported_and_not_recorded(self):
        """One failing recipient does not stop the batch or get an invitation."""
        report = self.dispatch([self.r1.uuid, self.r2.uuid, self.r3.uuid])

        self.assertEqual(
            sorted(sent['clientId'] for sent in report.sent),
            sorted([str(self.r1.uuid), str(self.r3.uuid)]),
        )
        self.assertEqual(report.failed, [{'clientId': str(self.r2.uuid), 'error': 'Mailbox unavailable'}])
        self.assertEqual(report.missing, [])

        self.assertEqual(invited(self.r1).count(), 1)
        self.assertEqual(invited(self.r2).count(), 0)
        self.assertEqual(invited(self.r3).count(), 1)

    def test_invitation_meta(self):
        """The invited event carries the delivery details."""
        self.dispatch([self.r1.uuid])

        event = invited(self.r1).get()
        self.assertEqual(event.actor, self.business.owner)
        self.assertEqual(event.business, self.business)
        self.assertEqual(event.meta['email'], 'alice@example.com')
        self.assertEqual(event.meta['subject'], 'Please leave us a review!')
        self.assertTrue(event.meta['messageId'].endswith('@reminders.upvoice.test>'))
        self.assertIsInstance(event.meta['expiresAtMs'], int)

    def test_missing_clients(self):
        """Unknown ids, non-UUIDs and other businesses' clients are missing."""
        stranger = ClientFactory()
        unknown = str(uuid.uuid4())

        report = self.dispatch([self.r1.uuid, unknown, 'garbage', stranger.uuid])

        self.assertEqual(report.missing, [unknown, 'garbage', str(stranger.uuid)])
        self.assertEqual(len(report.sent), 1)
        self.assertEqual(invited(stranger).count(), 0)
        self.assertEqual(len(self.send.calls), 1)

    def test_duplicate_ids_sent_once(self):
        """A client listed twice gets one email."""
        report = self.dispatch([self.r1.uuid, str(self.r1.uuid)])

        self.assertEqual(len(report.sent), 1)
        self.assertEqual(len(self.send.calls), 1)

    def test_client_without_email(self):
        """Clients with no address fail without a send attempt."""
        no_email = ClientFactory(business=self.business, email='')

        report = self.dispatch([no_email.uuid])

        self.assertEqual(report.failed, [{'clientId': str(no_email.uuid), 'error': 'Client has no email'}])
        self.assertEqual(self.send.calls, [])

    def test_nothing_to_send(self):
        """An all-missing batch sends nothing."""
        report = self.dispatch(['garbage'])

        self.assertEqual(report.as_dict(), {'sent': [], 'failed': [], 'missing': ['garbage']})
        self.assertEqual(self.send.calls, [])

    def test_links_carry_a_working_token(self):
        """Both links carry the same token, valid for that client only."""
        self.dispatch([self.r1.uuid])

        good_url, bad_url = LINK_PATTERN.findall(self.send.call_to('alice@example.com')['message'])
        good, bad = urlparse(good_url), urlparse(bad_url)
        good_query, bad_query = parse_qs(good.query), parse_qs(bad.query)

        self.assertEqual(good.path, f'/submit-review/{self.r1.uuid}')
        self.assertEqual(good_query['type'], ['good'])
        self.assertEqual(bad_query['type'], ['bad'])
        self.assertEqual(good_query['token'], bad_query['token'])
        self.assertEqual(good_query['businessId'], [str(self.business.uuid)])

        token = good_query['token'][0]
        signer = LinkSigner()
        self.assertTrue(signer.verify(token, self.business.uuid, self.r1.uuid).ok)
        self.assertFalse(signer.verify(token, self.business.uuid, self.r3.uuid).ok)
        self.assertEqual(invited(self.r1).get().meta['expiresAtMs'], signer.expires_at(token))

    def test_link_lifetime(self):
        """ttl controls how long the links work."""
        self.dispatch([self.r1.uuid], ttl=-1)

        good_url = LINK_PATTERN.findall(self.send.call_to('alice@example.com')['message'])[0]
        token = parse_qs(urlparse(good_url).query)['token'][0]
        self.assertFalse(LinkSigner().verify(token, self.business.uuid, self.r1.uuid).ok)

    def test_personalised_copy(self):
        """[customer] is replaced in subject and body, in any case."""
        self.business.email_subject = 'Thanks [Customer]!'
        self.business.email_body = 'Hi again [customer], how did we do?'
        self.business.save()

        self.dispatch([self.r1.uuid])

        call = self.send.call_to('alice@example.com')
        self.assertEqual(call['subject'], 'Thanks Alice!')
        self.assertIn('Hi again Alice, how did we do?', call['message'])
        self.assertIn('Hi again Alice, how did we do?', call['html'])
        self.assertNotIn('[customer]', call['message'].lower())

    def test_from_header(self):
        """The business's own mailbox is used when it can send from it."""
        self.dispatch([self.r1.uuid])

        self.assertEqual(self.send.calls[0]['from'], '"Acme Cleaning" <hello@acme.test>')

    def test_from_header_for_public_mailbox(self):
        """Consumer mailboxes fall back to a slug address on our domain."""
        self.business.email = 'acme@gmail.com'
        self.business.save()

        self.dispatch([self.r1.uuid])

        self.assertEqual(
            self.send.calls[0]['from'],
            '"Acme Cleaning" <acme-cleaning@reminders.upvoice.test>',
        )

    def test_concurrency_is_bounded(self):
        """No more than `concurrency` sends are in flight at once."""
        clients = ClientFactory.create_batch(6, business=self.business)
        self.send = FakeSend(delay=0.05)

        report = self.dispatch([client.uuid for client in clients], concurrency=2)

        self.assertEqual(len(report.sent), 6)
        self.assertLessEqual(self.send.max_in_flight, 2)

    def test_ledger_failure_reported_as_failed(self):
        """If the invitation cannot be recorded the recipient is reported failed."""
        with patch('reviews.invitations.RecipientLedger.append', side_effect=RuntimeError('db down')):
            report = self.dispatch([self.r1.uuid])

        self.assertEqual(report.sent, [])
        self.assertEqual(report.failed, [{'clientId': str(self.r1.uuid), 'error': 'db down'}])

    def test_real_email_backend(self):
        """With the default sender, mail goes through Django's backend."""
        dispatcher = InvitationDispatcher(self.business, actor=self.business.owner)

        report = dispatcher.dispatch([self.r1.uuid, self.r3.uuid])

        self.assertEqual(len(report.sent), 2)
        self.assertEqual(len(mail.outbox), 2)

        message = next(m for m in mail.outbox if m.to == ['alice@example.com'])
        self.assertEqual(message.from_email, '"Acme Cleaning" <hello@acme.test>')
        self.assertEqual(message.extra_headers['Message-ID'], invited(self.r1).get().meta['messageId'])
        self.assertEqual(message.alternatives[0][1], 'text/html')


class PreviewInvitationTest(TestCase):
    """Preview emails sent to the owner."""

    def setUp(self):
        """Set up test data."""
        self.business = BusinessFactory(name='Acme Cleaning', email_subject='Hey [customer]')

    def test_preview_uses_preview_client(self):
        """Preview links point at the preview client and record nothing."""
        preview = send_test_invitation(self.business, 'owner@example.com')

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['owner@example.com'])
        self.assertEqual(message.subject, 'Hey Customer')
        self.assertIn('Hi Customer,', message.body)

        good_url = LINK_PATTERN.findall(message.body)[0]
        self.assertEqual(urlparse(good_url).path, '/submit-review/test')

        self.assertEqual(preview['to'], 'owner@example.com')
        self.assertEqual(preview['subject'], 'Hey Customer')
        self.assertEqual(preview['messageId'], message.extra_headers['Message-ID'])
        self.assertEqual(ClientAction.objects.count(), 0)


class HelpersTest(TestCase):

    def test_personalise(self):
        self.assertEqual(personalise('[customer] / [CUSTOMER] / [Customer]', 'Ann'), 'Ann / Ann / Ann')
        self.assertEqual(personalise('No placeholder', 'Ann'), 'No placeholder')
        # Replacement text is literal
        self.assertEqual(personalise('Hi [customer]', r'A\1 B'), r'Hi A\1 B')

    def test_build_review_links(self):
        business = BusinessFactory()
        good, bad = build_review_links(business, 'test', 'a.b')

        self.assertEqual(
            good,
            f'https://upvoice.test/submit-review/test?type=good&businessId={business.uuid}&token=a.b',
        )
        self.assertEqual(bad.replace('type=bad', 'type=good'), good)
