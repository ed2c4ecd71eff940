"""
DRF Serializers for the owner API.
"""
from rest_framework import serializers
from clients.models import ClientAction


class InvitationRequestSerializer(serializers.Serializer):
    client_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        allow_empty=False,
        max_length=500,
        help_text="Public UUIDs of the clients to email",
    )


class TestInvitationRequestSerializer(serializers.Serializer):
    to_email = serializers.EmailField(help_text="Where to send the preview")


class SentInvitationSerializer(serializers.Serializer):
    clientId = serializers.CharField()
    email = serializers.EmailField()


class FailedInvitationSerializer(serializers.Serializer):
    clientId = serializers.CharField()
    error = serializers.CharField()


class DispatchReportSerializer(serializers.Serializer):
    """Per-recipient outcome of a dispatch, plus the From header used."""

    sent = SentInvitationSerializer(many=True)
    failed = FailedInvitationSerializer(many=True)
    missing = serializers.ListField(child=serializers.CharField())

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # "from" is a Python keyword
        self.fields["from"] = serializers.CharField()


class TestInvitationSerializer(serializers.Serializer):
    messageId = serializers.CharField()
    to = serializers.EmailField()
    subject = serializers.CharField()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["from"] = serializers.CharField()


class EmailStatisticsSerializer(serializers.Serializer):
    total_clients = serializers.IntegerField()
    invited = serializers.IntegerField()
    clicked = serializers.IntegerField()
    submitted = serializers.IntegerField()
    click_pairs = serializers.IntegerField()
    avg_seconds_to_click = serializers.FloatField(allow_null=True)


class ClientActionSerializer(serializers.ModelSerializer):
    """
    Ledger event for one client. Read-only: actions are never edited.
    """

    client = serializers.UUIDField(source="client.uuid", read_only=True)
    actor = serializers.CharField(source="actor.username", read_only=True, default=None)

    class Meta:
        model = ClientAction
        fields = ["id", "client", "action", "actor", "meta", "created_at"]
        read_only_fields = fields
