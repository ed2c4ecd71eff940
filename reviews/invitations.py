"""
Review request emails.

InvitationDispatcher sends one personalised email per client with a signed
"good" and "bad" link, and records an `invited` action for every send the
email backend accepted. Sends run concurrently with a small fixed bound;
one recipient failing never stops the batch.
"""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from urllib.parse import quote, urlencode
from asgiref.sync import async_to_sync, sync_to_async
from django.conf import settings
from django.db import transaction
from django.template.loader import render_to_string
from clients.ledger import RecipientLedger
from clients.models import Client, ClientAction
from core.email import get_from_header, send_email
from core.managers import parse_uuid
from core.tenancy import set_tenant_context
from .tokens import get_link_signer

logger = logging.getLogger("reviews")

CUSTOMER_PLACEHOLDER = re.compile(r'\[customer\]', re.IGNORECASE)


@dataclass
class DispatchReport:
    """Per-recipient outcome of a dispatch run"""
    sent: list = field(default_factory=list)
    failed: list = field(default_factory=list)
    missing: list = field(default_factory=list)

    def as_dict(self):
        return {'sent': self.sent, 'failed': self.failed, 'missing': self.missing}


def personalise(text, client_name):
    """Replace every [customer] placeholder (any case) with the client's name"""
    return CUSTOMER_PLACEHOLDER.sub(lambda _: client_name, text)


def build_review_links(business, client_id, token):
    """
    Good/bad review links for one recipient.

    Both links carry the same token and differ only in `type`.
    """
    base = f"{settings.SITE_PROTOCOL}://{settings.SITE_DOMAIN}/submit-review/{quote(str(client_id), safe='')}"

    def link(review_type):
        query = urlencode({'type': review_type, 'businessId': str(business.uuid), 'token': token})
        return f"{base}?{query}"

    return link('good'), link('bad')


def render_review_request(business, client_name, good_url, bad_url):
    """
    Render the review request email for one recipient.

    Returns:
        tuple: (subject, text_message, html_message)
    """
    subject = personalise(business.get_email_subject(), client_name)
    context = {
        'client_name': client_name,
        'body': personalise(business.get_email_body(), client_name),
        'good_url': good_url,
        'bad_url': bad_url,
        'business_name': (business.name or 'Our Team').strip(),
    }

    text_message = render_to_string('emails/review_request.txt', context)
    html_message = render_to_string('emails/review_request.html', context)
    return subject, text_message, html_message


class InvitationDispatcher:
    """
    Send review requests to a batch of a business's clients.

    Args:
        business: Business the clients belong to
        actor: User who triggered the send (recorded on each action)
        signer: LinkSigner (defaults to settings)
        send: callable with core.email.send_email's signature, returning
            the provider message id
        concurrency: max sends in flight (defaults to INVITATION_CONCURRENCY)
        ttl: link lifetime (defaults to REVIEW_LINK_TTL_DAYS)
    """

    def __init__(self, business, actor=None, signer=None, send=send_email, concurrency=None, ttl=None):
        self.business = business
        self.actor = actor
        self.signer = signer or get_link_signer()
        self.send = send
        self.concurrency = concurrency or settings.INVITATION_CONCURRENCY
        self.ttl = ttl if ttl is not None else timedelta(days=settings.REVIEW_LINK_TTL_DAYS)
        self.from_header = get_from_header(business)

    def load_clients(self, client_ids):
        """
        Split requested ids into clients of this business and missing ids.

        Duplicates are sent once. Ids that are not UUIDs, or belong to another
        business, are reported as missing.
        """
        requested = list(dict.fromkeys(str(client_id) for client_id in client_ids))
        parsed = {client_id: parse_uuid(client_id) for client_id in requested}

        clients = Client.objects.for_business(self.business).filter(
            uuid__in=[value for value in parsed.values() if value is not None]
        )
        by_uuid = {client.uuid: client for client in clients}

        found = []
        missing = []
        for client_id in requested:
            client = by_uuid.get(parsed[client_id])
            if client is None:
                missing.append(client_id)
            else:
                found.append(client)
        return found, missing

    def dispatch(self, client_ids):
        """
        Send review requests to the given clients.

        Returns:
            DispatchReport
        """
        clients, missing = self.load_clients(client_ids)
        report = DispatchReport(missing=missing)

        if clients:
            async_to_sync(self._fan_out)(clients, report)

        logger.info(
            f"Review requests for business {self.business.uuid}: "
            f"{len(report.sent)} sent, {len(report.failed)} failed, {len(report.missing)} missing"
        )
        return report

    async def _fan_out(self, clients, report):
        pending = iter(clients)
        workers = [
            self._worker(pending, report)
            for _ in range(min(self.concurrency, len(clients)))
        ]
        await asyncio.gather(*workers)

    async def _worker(self, pending, report):
        for client in pending:
            try:
                await self._send_one(client)
                report.sent.append({'clientId': str(client.uuid), 'email': client.email})
            except Exception as e:
                logger.warning(f"Review request to client {client.uuid} failed: {e}")
                report.failed.append({'clientId': str(client.uuid), 'error': str(e) or 'Send failed'})

    async def _send_one(self, client):
        if not client.email:
            raise ValueError('Client has no email')

        client_name = client.display_name
        token = self.signer.mint(self.business.uuid, client.uuid, self.ttl)
        good_url, bad_url = build_review_links(self.business, client.uuid, token)
        subject, text_message, html_message = render_review_request(
            self.business, client_name, good_url, bad_url
        )

        # Sends block on the network; run them off the event loop
        message_id = await sync_to_async(self.send, thread_sensitive=False)(
            subject=subject,
            message=text_message,
            recipient_list=[client.email],
            html_message=html_message,
            from_email=self.from_header,
        )
        if not message_id:
            raise RuntimeError('Email provider did not accept the send request')

        await sync_to_async(self._record_invited)(client, {
            'email': client.email,
            'subject': subject,
            'expiresAtMs': self.signer.expires_at(token),
            'messageId': message_id,
        })

    def _record_invited(self, client, meta):
        with transaction.atomic():
            set_tenant_context(self.actor.pk if self.actor else None)
            RecipientLedger(client).append(ClientAction.Action.INVITED, actor=self.actor, meta=meta)


def send_test_invitation(business, to_email, send=send_email, signer=None):
    """
    Send the business's review request to `to_email` as a preview.

    Links use the preview client id, so they open the review page but
    nothing the recipient does is recorded.

    Returns:
        dict: messageId, to, from and subject of the preview
    """
    signer = signer or get_link_signer()
    preview_id = settings.REVIEW_LINK_PREVIEW_CLIENT_ID
    ttl = timedelta(days=settings.REVIEW_LINK_TTL_DAYS)

    token = signer.mint(business.uuid, preview_id, ttl)
    good_url, bad_url = build_review_links(business, preview_id, token)
    subject, text_message, html_message = render_review_request(business, 'Customer', good_url, bad_url)
    from_header = get_from_header(business)

    message_id = send(
        subject=subject,
        message=text_message,
        recipient_list=[to_email],
        html_message=html_message,
        from_email=from_header,
    )

    logger.info(f"Preview review request for business {business.uuid} sent to {to_email}")
    return {'messageId': message_id, 'to': to_email, 'from': from_header, 'subject': subject}
