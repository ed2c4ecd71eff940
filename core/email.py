"""
Email utilities for business review requests
"""
import re
from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.core.mail.message import make_msgid

PUBLIC_MAILBOX_DOMAINS = ('gmail.com', 'yahoo.com', 'outlook.com', 'hotmail.com')


class EmailDeliveryError(Exception):
    """Raised when the email backend did not accept a message"""


def is_public_mailbox(address):
    """
    True for addresses we cannot send "from" (consumer mailboxes or blank).

    Providers reject mail claiming to come from these domains unless the
    domain is verified, so such businesses send from our own domain instead.
    """
    address = (address or '').strip().lower()
    if not address:
        return True
    return address.rsplit('@', 1)[-1] in PUBLIC_MAILBOX_DOMAINS


def sender_local_part(slug):
    """Turn a business slug into a safe mailbox local part, or None"""
    if not slug:
        return None
    cleaned = re.sub(r'[^a-z0-9]+', '-', slug.lower()).strip('-')[:64]
    return cleaned or None


def get_from_address(business):
    """
    Pick the sender address for a business.

    Preference order: the business's own mailbox, a slug-based address on
    INVITATION_SENDER_DOMAIN, then DEFAULT_FROM_EMAIL.
    """
    business_email = (business.email or '').strip()
    if not is_public_mailbox(business_email):
        return business_email

    local_part = sender_local_part(business.slug)
    if local_part:
        return f'{local_part}@{settings.INVITATION_SENDER_DOMAIN}'

    return settings.DEFAULT_FROM_EMAIL


def get_from_header(business):
    """Display-name From header, e.g. '"Acme Cleaning" <acme@...>'"""
    display_name = (business.name or 'Our Team').strip().replace('"', '')
    return f'"{display_name}" <{get_from_address(business)}>'


def send_email(subject, message, recipient_list, html_message=None, from_email=None):
    """
    Send a single email and return its Message-ID.

    Args:
        subject: Email subject
        message: Plain text message
        recipient_list: List of recipient email addresses
        html_message: Optional HTML version of message
        from_email: Optional from header (defaults to DEFAULT_FROM_EMAIL)

    Returns:
        str: the Message-ID header stamped on the message, used as the
        delivery reference in the client action ledger

    Raises:
        EmailDeliveryError: if the backend accepted nothing
    """
    if from_email is None:
        from_email = settings.DEFAULT_FROM_EMAIL

    message_id = make_msgid(domain=settings.INVITATION_SENDER_DOMAIN)

    email = EmailMultiAlternatives(
        subject=subject,
        body=message,
        from_email=from_email,
        to=recipient_list,
        headers={'Message-ID': message_id},
        connection=get_connection(fail_silently=False),
    )

    if html_message:
        email.attach_alternative(html_message, 'text/html')

    if not email.send():
        raise EmailDeliveryError('Email provider did not accept the send request')

    return message_id
