"""
Tests for API viewsets.
"""
import uuid
from unittest.mock import patch
from django.core import mail
from django.test import TestCase
from rest_framework.test import APIClient
from clients.factories import ClientFactory, ClientActionFactory
from clients.models import ClientAction
from core.factories import BusinessFactory, UserFactory


class OwnerAPITestCase(TestCase):

    def setUp(self):
        """Set up test data."""
        self.owner = UserFactory()
        self.business = BusinessFactory(owner=self.owner, name='Acme Cleaning', email='hello@acme.test')
        self.alice = ClientFactory(business=self.business, name='Alice', email='alice@example.com')
        self.bob = ClientFactory(business=self.business, name='Bob', email='bob@example.com')

        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def url(self, suffix):
        return f'/api/v1/businesses/{self.business.uuid}/{suffix}'


class InvitationsEndpointTest(OwnerAPITestCase):
    """POST /businesses/{uuid}/invitations/"""

    def test_send_invitations(self):
        """Owners can email their clients; the report lists each outcome."""
        missing = str(uuid.uuid4())

        response = self.client.post(
            self.url('invitations/'),
            {'client_ids': [str(self.alice.uuid), str(self.bob.uuid), missing]},
            format='json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['sent']), 2)
        self.assertEqual(response.data['failed'], [])
        self.assertEqual(response.data['missing'], [missing])
        self.assertEqual(response.data['from'], '"Acme Cleaning" <hello@acme.test>')
        self.assertEqual(len(mail.outbox), 2)

        event = ClientAction.objects.get(client=self.alice)
        self.assertEqual(event.action, ClientAction.Action.INVITED)
        self.assertEqual(event.actor, self.owner)

    def test_failed_send_reported(self):
        """Backend failures show up per client instead of failing the request."""
        with patch('core.email.EmailMultiAlternatives.send', return_value=0):
            response = self.client.post(
                self.url('invitations/'), {'client_ids': [str(self.alice.uuid)]}, format='json'
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['sent'], [])
        self.assertEqual(response.data['failed'][0]['clientId'], str(self.alice.uuid))
        self.assertFalse(ClientAction.objects.exists())

    def test_client_ids_required(self):
        response = self.client.post(self.url('invitations/'), {'client_ids': []}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error_code'], 'validation_error')
        self.assertIn('client_ids', response.data)

    def test_other_owner_cannot_send(self):
        """Someone else's business looks like it does not exist."""
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post(
            self.url('invitations/'), {'client_ids': [str(self.alice.uuid)]}, format='json'
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error_code'], 'not_found')
        self.assertEqual(len(mail.outbox), 0)

    def test_anonymous_rejected(self):
        self.client.force_authenticate(user=None)

        response = self.client.post(
            self.url('invitations/'), {'client_ids': [str(self.alice.uuid)]}, format='json'
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error_code'], 'not_authenticated')

    def test_inactive_business_hidden(self):
        self.business.is_active = False
        self.business.save()

        response = self.client.post(
            self.url('invitations/'), {'client_ids': [str(self.alice.uuid)]}, format='json'
        )

        self.assertEqual(response.status_code, 404)


class PreviewInvitationEndpointTest(OwnerAPITestCase):
    """POST /businesses/{uuid}/invitations/test/"""

    def test_send_preview(self):
        response = self.client.post(self.url('invitations/test/'), {'to_email': 'me@acme.test'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['to'], 'me@acme.test')
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('/submit-review/test?', mail.outbox[0].body)
        self.assertFalse(ClientAction.objects.exists())

    def test_invalid_email(self):
        response = self.client.post(self.url('invitations/test/'), {'to_email': 'nope'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertIn('to_email', response.data)

    def test_send_failure(self):
        with patch('core.email.EmailMultiAlternatives.send', side_effect=OSError('smtp down')):
            response = self.client.post(self.url('invitations/test/'), {'to_email': 'me@acme.test'}, format='json')

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data['error_code'], 'email_not_sent')

    def test_other_owner(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post(self.url('invitations/test/'), {'to_email': 'me@acme.test'}, format='json')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(len(mail.outbox), 0)


class EmailStatisticsEndpointTest(OwnerAPITestCase):
    """GET /businesses/{uuid}/email-statistics/"""

    def test_statistics(self):
        ClientActionFactory(client=self.alice)
        ClientActionFactory(client=self.bob)
        ClientActionFactory(client=self.alice, action=ClientAction.Action.CLICKED)

        response = self.client.get(self.url('email-statistics/'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_clients'], 2)
        self.assertEqual(response.data['invited'], 2)
        self.assertEqual(response.data['clicked'], 1)
        self.assertEqual(response.data['submitted'], 0)
        self.assertEqual(response.data['click_pairs'], 1)
        self.assertIsNotNone(response.data['avg_seconds_to_click'])

    def test_other_owner(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(self.url('email-statistics/'))

        self.assertEqual(response.status_code, 404)

    def test_malformed_business_id(self):
        response = self.client.get('/api/v1/businesses/not-a-uuid/email-statistics/')

        self.assertEqual(response.status_code, 404)


class ClientActionsEndpointTest(OwnerAPITestCase):
    """GET /businesses/{uuid}/clients/{uuid}/actions/"""

    def setUp(self):
        super().setUp()
        ClientActionFactory(client=self.alice, actor=self.owner)
        ClientActionFactory(client=self.alice, action=ClientAction.Action.CLICKED, meta={'ip': '10.0.0.1'})
        ClientActionFactory(client=self.alice, action=ClientAction.Action.CLICKED)
        ClientActionFactory(client=self.bob)

    def test_list_actions(self):
        response = self.client.get(self.url(f'clients/{self.alice.uuid}/actions/'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 3)
        results = response.data['results']
        self.assertEqual([r['action'] for r in results], ['invited', 'clicked', 'clicked'])
        self.assertEqual(results[0]['actor'], self.owner.username)
        self.assertIsNone(results[1]['actor'])
        self.assertEqual(results[1]['meta'], {'ip': '10.0.0.1'})
        self.assertEqual(results[0]['client'], str(self.alice.uuid))

    def test_filter_by_action(self):
        response = self.client.get(self.url(f'clients/{self.alice.uuid}/actions/'), {'action': 'clicked'})

        self.assertEqual(response.data['count'], 2)

    def test_newest_first(self):
        response = self.client.get(self.url(f'clients/{self.alice.uuid}/actions/'), {'ordering': '-created_at'})

        self.assertEqual(response.data['results'][-1]['action'], 'invited')

    def test_client_of_other_business(self):
        stranger = ClientFactory()

        response = self.client.get(self.url(f'clients/{stranger.uuid}/actions/'))

        self.assertEqual(response.status_code, 404)

    def test_other_owner(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(self.url(f'clients/{self.alice.uuid}/actions/'))

        self.assertEqual(response.status_code, 404)


class SchemaTest(TestCase):

    def test_schema_generates(self):
        """The OpenAPI schema includes the owner endpoints."""
        client = APIClient()
        client.force_authenticate(user=UserFactory())

        response = client.get('/api/v1/schema/')

        self.assertEqual(response.status_code, 200)
