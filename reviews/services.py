"""
Service functions for review submission
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from django.db import IntegrityError, transaction
from clients.ledger import RecipientLedger, get_client, is_preview_client
from clients.models import Client, ClientAction
from .exceptions import InvalidLinkToken, ReviewAlreadySubmitted
from .models import Review
from .tokens import verify_link_token

logger = logging.getLogger("reviews")

REVIEW_TYPE_GOOD = 'good'
REVIEW_TYPE_BAD = 'bad'
REVIEW_TYPES = (REVIEW_TYPE_GOOD, REVIEW_TYPE_BAD)


@dataclass(frozen=True)
class SubmitResult:
    """persisted is False for preview submissions (mode "test")"""
    persisted: bool
    mode: str
    review: Review = None


def submit_review(token, business_id, client_id, review_type, review, stars=None, signer=None):
    """
    Persist a client's review, at most once per (business, client).

    Token verification, the guard checks, the review row and the submitted
    event all happen in one transaction; any failure leaves nothing behind.

    Args:
        token: review link token from the email
        business_id: Business public UUID the client claims
        client_id: Client public UUID, or the preview id
        review_type: 'good' or 'bad', taken from the link the client used
        review: review text (already validated non-empty)
        stars: optional Decimal 0-5
        signer: LinkSigner override (defaults to settings)

    Returns:
        SubmitResult

    Raises:
        InvalidLinkToken: token did not verify
        ClientNotFound: client does not belong to the business
        ReviewAlreadySubmitted: the client already left a review
    """
    try:
        with transaction.atomic():
            check = verify_link_token(token, business_id, client_id, signer=signer)
            if not check.ok:
                raise InvalidLinkToken(check.reason)

            if is_preview_client(str(client_id)):
                return SubmitResult(persisted=False, mode='test')

            client = get_client(business_id, client_id, lock=True)
            ledger = RecipientLedger(client)

            if ledger.has_submitted():
                logger.info(f"Submission rejected, review already submitted: client={client.uuid}")
                raise ReviewAlreadySubmitted()

            happy = review_type == REVIEW_TYPE_GOOD
            created = Review.objects.create(
                business_id=client.business_id,
                client=client,
                review=review,
                stars=stars,
                happy=happy,
            )

            client.sentiment = Client.SENTIMENT_GOOD if happy else Client.SENTIMENT_BAD
            client.save(update_fields=['sentiment', 'updated_at'])

            ledger.append(
                ClientAction.Action.SUBMITTED,
                meta={
                    'stars': float(stars) if stars is not None else None,
                    'happy': happy,
                },
            )
    except IntegrityError:
        # A concurrent submission won the unique constraint
        logger.info(f"Submission rejected by unique constraint: client={client_id}")
        raise ReviewAlreadySubmitted()

    logger.info(f"Review submitted: business={business_id} client={client_id} happy={happy}")
    return SubmitResult(persisted=True, mode='live', review=created)


def parse_stars(value):
    """
    Coerce an optional star rating to Decimal(0.0-5.0), rounded to one place.

    Anything missing or out of range is treated as "no rating".
    """
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        stars = Decimal(str(value))
        if not stars.is_finite():
            return None
        stars = stars.quantize(Decimal('0.1'))
    except ArithmeticError:
        return None
    if not Decimal('0') <= stars <= Decimal('5'):
        return None
    return stars
