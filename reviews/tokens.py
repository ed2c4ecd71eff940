"""
Signed review-link tokens.

A token lets an anonymous client act on their own review request without a
session. It carries the business and client it was issued for and an expiry,
signed with HMAC-SHA256:

    base64url(json payload) + "." + base64url(hmac)

Tokens are deterministic and stateless. They are never stored; revoking one
means letting it expire or rotating REVIEW_LINK_SECRET (which revokes all).
"""
import base64
import binascii
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

logger = logging.getLogger("reviews")

# expiresAt values above this are milliseconds, below it seconds
_MILLISECOND_THRESHOLD = 1e12


class TokenError(str, Enum):
    MALFORMED_TOKEN = 'MALFORMED_TOKEN'
    BAD_SIGNATURE = 'BAD_SIGNATURE'
    EXPIRED = 'EXPIRED'
    SCOPE_MISMATCH = 'SCOPE_MISMATCH'


@dataclass(frozen=True)
class TokenCheck:
    """Result of verifying a token: ok, or a failure reason"""
    ok: bool
    reason: TokenError = None
    payload: dict = None
    preview: bool = False

    @classmethod
    def passed(cls, payload, preview=False):
        return cls(ok=True, payload=payload, preview=preview)

    @classmethod
    def failed(cls, reason):
        return cls(ok=False, reason=reason)


def _b64encode(raw):
    return base64.urlsafe_b64encode(raw).rstrip(b'=').decode('ascii')


def _b64decode(segment):
    """
    Decode an unpadded base64url segment.

    Rejects anything that does not re-encode to the same text, so two
    different strings can never decode to the same bytes.
    """
    try:
        raw = base64.urlsafe_b64decode(segment + '=' * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return None
    if _b64encode(raw) != segment:
        return None
    return raw


def _now_ms():
    return int(timezone.now().timestamp() * 1000)


def _ttl_seconds(ttl):
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


class LinkSigner:
    """
    Mints and verifies review-link tokens.

    Args:
        secret: signing secret (defaults to REVIEW_LINK_SECRET)
        previous_secrets: retired secrets still accepted when verifying
            (defaults to REVIEW_LINK_PREVIOUS_SECRETS)
        preview_client_id: reserved client id that always verifies
            (defaults to REVIEW_LINK_PREVIEW_CLIENT_ID)

    Raises:
        ImproperlyConfigured: if no signing secret is available
    """

    def __init__(self, secret=None, previous_secrets=None, preview_client_id=None):
        if secret is None:
            secret = getattr(settings, 'REVIEW_LINK_SECRET', '')
        if previous_secrets is None:
            previous_secrets = getattr(settings, 'REVIEW_LINK_PREVIOUS_SECRETS', [])
        if preview_client_id is None:
            preview_client_id = settings.REVIEW_LINK_PREVIEW_CLIENT_ID

        if not secret:
            raise ImproperlyConfigured(
                'REVIEW_LINK_SECRET is not set. Generate one with: '
                'python -c "import secrets; print(secrets.token_urlsafe(48))"'
            )

        self._keys = [s.encode() for s in [secret, *previous_secrets] if s]
        self.preview_client_id = preview_client_id

    def _sign(self, body, key=None):
        return hmac.new(key or self._keys[0], body, hashlib.sha256).digest()

    @staticmethod
    def serialize(business_id, client_id, expires_at):
        """Canonical payload bytes (sorted keys, no whitespace)"""
        payload = {
            'businessId': str(business_id),
            'recipientId': str(client_id),
            'expiresAt': expires_at,
        }
        return json.dumps(payload, sort_keys=True, separators=(',', ':')).encode('utf-8')

    def mint(self, business_id, client_id, ttl):
        """
        Create a token for (business_id, client_id) valid for ttl.

        Args:
            business_id: Business public UUID
            client_id: Client public UUID (or the preview id)
            ttl: seconds or timedelta; negative values give an expired token

        Returns:
            str: the token, safe to put in a URL query string
        """
        expires_at = _now_ms() + int(_ttl_seconds(ttl) * 1000)
        body = self.serialize(business_id, client_id, expires_at)
        return f"{_b64encode(body)}.{_b64encode(self._sign(body))}"

    def expires_at(self, token):
        """expiresAt (epoch ms) embedded in a token, without verifying it"""
        body_part, _, _ = (token or '').rpartition('.')
        body = _b64decode(body_part)
        try:
            return json.loads(body)['expiresAt']
        except (TypeError, ValueError, KeyError):
            return None

    def verify(self, token, business_id, client_id):
        """
        Check a token against the (business_id, client_id) the caller claims.

        The preview client id passes without any check so template previews
        work from a static link.

        Returns:
            TokenCheck
        """
        business_id = str(business_id or '')
        client_id = str(client_id or '')

        if client_id == self.preview_client_id:
            return TokenCheck.passed(
                {'businessId': business_id, 'recipientId': client_id, 'expiresAt': None},
                preview=True,
            )

        body_part, _, sig_part = (token or '').rpartition('.')
        if not body_part or not sig_part:
            return TokenCheck.failed(TokenError.MALFORMED_TOKEN)

        body = _b64decode(body_part)
        signature = _b64decode(sig_part)
        if body is None or signature is None:
            return TokenCheck.failed(TokenError.MALFORMED_TOKEN)

        # Constant-time comparison against the current and any retired secret
        if not any(hmac.compare_digest(self._sign(body, key), signature) for key in self._keys):
            return TokenCheck.failed(TokenError.BAD_SIGNATURE)

        try:
            payload = json.loads(body)
        except ValueError:
            return TokenCheck.failed(TokenError.MALFORMED_TOKEN)

        if not isinstance(payload, dict):
            return TokenCheck.failed(TokenError.MALFORMED_TOKEN)

        expires_at = payload.get('expiresAt')
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            return TokenCheck.failed(TokenError.MALFORMED_TOKEN)

        expires_ms = expires_at if expires_at > _MILLISECOND_THRESHOLD else expires_at * 1000
        if expires_ms <= _now_ms():
            return TokenCheck.failed(TokenError.EXPIRED)

        if payload.get('businessId') != business_id or payload.get('recipientId') != client_id:
            return TokenCheck.failed(TokenError.SCOPE_MISMATCH)

        return TokenCheck.passed(payload)


def get_link_signer():
    """Signer built from settings"""
    return LinkSigner()


def verify_link_token(token, business_id, client_id, signer=None):
    """
    Verify a token and log failures by reason.

    Returns:
        TokenCheck
    """
    check = (signer or get_link_signer()).verify(token, business_id, client_id)
    if not check.ok:
        logger.info(f"Review link rejected: reason={check.reason.value} business={business_id}")
    return check
