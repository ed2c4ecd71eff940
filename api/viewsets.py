"""
DRF ViewSets for the owner API.

Every endpoint is scoped to businesses owned by the signed-in user; other
businesses answer 404 as if they did not exist.
"""
import logging
from django.shortcuts import get_object_or_404
from rest_framework import mixins, viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle, UserRateThrottle
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, OpenApiExample

from clients.ledger import funnel_statistics
from clients.models import Client, ClientAction
from core.models import Business
from reviews.invitations import InvitationDispatcher, send_test_invitation

from .permissions import IsBusinessOwner
from .serializers import (
    InvitationRequestSerializer,
    TestInvitationRequestSerializer,
    DispatchReportSerializer,
    TestInvitationSerializer,
    EmailStatisticsSerializer,
    ClientActionSerializer,
)

logger = logging.getLogger("api")

UUID_REGEX = r"[0-9a-fA-F-]{36}"


class BusinessViewSet(viewsets.GenericViewSet):
    """
    Review request endpoints for one of the user's businesses.
    """

    permission_classes = [IsBusinessOwner]
    lookup_field = "uuid"
    lookup_value_regex = UUID_REGEX

    def get_queryset(self):
        return Business.objects.for_owner(self.request.user)

    def get_throttles(self):
        """Sending email is throttled more tightly than reads."""
        if self.action in ("invitations", "test_invitation"):
            self.throttle_scope = "invitations"
            return [UserRateThrottle(), ScopedRateThrottle()]
        return super().get_throttles()

    @extend_schema(
        tags=["invitations"],
        description="Email review requests to clients of this business. "
                    "Each client gets one email with signed 'good' and 'bad' links.",
        request=InvitationRequestSerializer,
        responses={200: DispatchReportSerializer},
        examples=[
            OpenApiExample(
                name="send_invitations_example",
                summary="Send to two clients",
                value={"client_ids": [
                    "7a44880e-2f99-4593-b3a7-58109af8a468",
                    "f3d7c2a1-8b9e-4f5a-9c1d-2e3f4a5b6c7d",
                ]},
                request_only=True,
            )
        ],
    )
    @action(detail=True, methods=["post"])
    def invitations(self, request, uuid=None):
        """
        POST /api/v1/businesses/{uuid}/invitations/
        Body: {"client_ids": ["...", ...]}
        """
        business = self.get_object()
        serializer = InvitationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dispatcher = InvitationDispatcher(business, actor=request.user)
        report = dispatcher.dispatch(serializer.validated_data["client_ids"])

        return Response({**report.as_dict(), "from": dispatcher.from_header})

    @extend_schema(
        tags=["invitations"],
        description="Send a preview of the review request email. "
                    "Links in the preview open the review page but record nothing.",
        request=TestInvitationRequestSerializer,
        responses={200: TestInvitationSerializer},
    )
    @action(detail=True, methods=["post"], url_path="invitations/test", url_name="test-invitation")
    def test_invitation(self, request, uuid=None):
        """
        POST /api/v1/businesses/{uuid}/invitations/test/
        Body: {"to_email": "owner@example.com"}
        """
        business = self.get_object()
        serializer = TestInvitationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            preview = send_test_invitation(business, serializer.validated_data["to_email"])
        except Exception as e:
            logger.error(f"Preview email for business {business.uuid} failed: {e}")
            return Response(
                {"error": "Failed to send test email", "error_code": "email_not_sent"},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        return Response(preview)

    @extend_schema(
        tags=["analytics"],
        description="Review request funnel: clients invited, clicked and submitted, "
                    "and the average time from invitation to first click.",
        responses={200: EmailStatisticsSerializer},
    )
    @action(detail=True, methods=["get"], url_path="email-statistics", url_name="email-statistics")
    def email_statistics(self, request, uuid=None):
        """GET /api/v1/businesses/{uuid}/email-statistics/"""
        business = self.get_object()
        return Response(EmailStatisticsSerializer(funnel_statistics(business)).data)


@extend_schema(
    tags=["clients"],
    description="Action history (invited, clicked, submitted) for one client, oldest first.",
)
class ClientActionViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Read-only ledger events for a client of one of the user's businesses.
    """

    serializer_class = ClientActionSerializer
    permission_classes = [IsBusinessOwner]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ["action"]
    ordering_fields = ["created_at"]
    ordering = ["created_at", "id"]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return ClientAction.objects.none()

        business = get_object_or_404(
            Business.objects.for_owner(self.request.user),
            uuid=self.kwargs["business_uuid"],
        )
        client = get_object_or_404(
            Client.objects.for_business(business),
            uuid=self.kwargs["client_uuid"],
        )
        return (
            ClientAction.objects.for_business(business)
            .filter(client=client)
            .select_related("client", "actor")
        )
