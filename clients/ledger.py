"""
Client action ledger.

The ledger is the authoritative record of what a client has done for a
business (invited -> clicked -> submitted). State is never stored; it is
derived by checking which actions exist, and those checks guard every
transition the public review link can make.
"""
import logging
from dataclasses import dataclass
from django.conf import settings
from django.db import transaction
from django.db.models import Max, Min
from core.managers import parse_uuid
from reviews.exceptions import ClientNotFound, EmailNotSent, ReviewAlreadySubmitted
from .models import Client, ClientAction

logger = logging.getLogger("clients")


@dataclass(frozen=True)
class ClickResult:
    """Outcome of recording a link click. `already` is True on repeat clicks."""
    already: bool


def is_preview_client(client_id):
    """True for the reserved recipient used by template previews"""
    return client_id == settings.REVIEW_LINK_PREVIEW_CLIENT_ID


def get_client(business_id, client_id, lock=False):
    """
    Load a client by public ids, scoped to its business.

    Args:
        business_id: Business public UUID (str or UUID)
        client_id: Client public UUID (str or UUID)
        lock: Take a row lock on the client (inside transaction.atomic only)

    Raises:
        ClientNotFound: if either id is malformed or the client does not
            belong to the business
    """
    business_uuid = parse_uuid(business_id)
    client_uuid = parse_uuid(client_id)
    if business_uuid is None or client_uuid is None:
        raise ClientNotFound()

    queryset = Client.objects.filter(uuid=client_uuid, business__uuid=business_uuid)
    if lock:
        queryset = queryset.select_for_update()

    client = queryset.first()
    if client is None:
        raise ClientNotFound()
    return client


class RecipientLedger:
    """Guard queries and the append point for one (business, client) pair"""

    def __init__(self, client):
        self.client = client
        self.business_id = client.business_id

    def _actions(self, action):
        return ClientAction.objects.filter(
            business_id=self.business_id,
            client=self.client,
            action=action,
        )

    def was_invited(self):
        return self._actions(ClientAction.Action.INVITED).exists()

    def has_clicked(self):
        return self._actions(ClientAction.Action.CLICKED).exists()

    def has_submitted(self):
        """
        True if the client has a review or a submitted event.
        """
        from reviews.models import Review

        if Review.objects.filter(business_id=self.business_id, client=self.client).exists():
            return True
        return self._actions(ClientAction.Action.SUBMITTED).exists()

    def append(self, action, actor=None, meta=None):
        """
        Insert one event row.

        Args:
            action: one of ClientAction.Action
            actor: User who triggered it, or None for the public recipient
            meta: JSON-serializable dict of context

        Returns:
            ClientAction: the created row
        """
        if action not in ClientAction.Action.values:
            raise ValueError(f"Unknown client action: {action!r}")

        return ClientAction.objects.create(
            business_id=self.business_id,
            client=self.client,
            actor=actor,
            action=action,
            meta=meta or {},
        )


def record_click(business_id, client_id, meta=None):
    """
    Record that a client opened their review link.

    Call only after the link token verified. A repeat click is logged again
    and reported with already=True.

    Raises:
        ClientNotFound: client does not belong to the business
        EmailNotSent: no invitation was ever delivered to this client
        ReviewAlreadySubmitted: the client already left a review
    """
    if is_preview_client(client_id):
        return ClickResult(already=False)

    with transaction.atomic():
        client = get_client(business_id, client_id, lock=True)
        ledger = RecipientLedger(client)

        if not ledger.was_invited():
            logger.info(f"Click rejected, no invitation recorded: client={client.uuid}")
            raise EmailNotSent()

        if ledger.has_submitted():
            logger.info(f"Click rejected, review already submitted: client={client.uuid}")
            raise ReviewAlreadySubmitted()

        already = ledger.has_clicked()
        ledger.append(ClientAction.Action.CLICKED, meta=meta)

    return ClickResult(already=already)


def funnel_statistics(business):
    """
    Review-request funnel for a business, derived from the ledger.

    Returns:
        dict: distinct client counts per action, plus the average time from
        the latest invitation to the first click (clients who clicked after
        being invited only)
    """
    actions = ClientAction.objects.for_business(business)

    def distinct_clients(action):
        return actions.filter(action=action).order_by().values('client').distinct().count()

    last_invited = dict(
        actions.filter(action=ClientAction.Action.INVITED).order_by()
        .values_list('client')
        .annotate(at=Max('created_at'))
    )
    first_clicked = dict(
        actions.filter(action=ClientAction.Action.CLICKED).order_by()
        .values_list('client')
        .annotate(at=Min('created_at'))
    )

    gaps = [
        (first_clicked[client_pk] - invited_at).total_seconds()
        for client_pk, invited_at in last_invited.items()
        if client_pk in first_clicked and first_clicked[client_pk] >= invited_at
    ]

    return {
        'total_clients': Client.objects.for_business(business).count(),
        'invited': distinct_clients(ClientAction.Action.INVITED),
        'clicked': distinct_clients(ClientAction.Action.CLICKED),
        'submitted': distinct_clients(ClientAction.Action.SUBMITTED),
        'click_pairs': len(gaps),
        'avg_seconds_to_click': round(sum(gaps) / len(gaps), 1) if gaps else None,
    }
