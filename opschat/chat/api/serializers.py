from __future__ import annotations

from rest_framework import serializers

from opschat.chat.models import Channel
from opschat.chat.models import Message


class ChannelSerializer(serializers.ModelSerializer):
    """Read serializer for channels the requesting user belongs to."""

    role = serializers.SerializerMethodField()

    class Meta:
        model = Channel
        fields = (
            "id",
            "enterprise",
            "name",
            "description",
            "kind",
            "department",
            "created_by",
            "created_at",
            "role",
        )

    def get_role(self, obj: Channel) -> str | None:
        return getattr(obj, "member_role", None)


class MessageSerializer(serializers.ModelSerializer):
    """Message history in the same shape as the ``new_message`` event."""

    channelId = serializers.IntegerField(source="channel_id")  # noqa: N815
    senderId = serializers.IntegerField(source="sender_id")  # noqa: N815
    senderName = serializers.SerializerMethodField()  # noqa: N815
    attachmentRef = serializers.SerializerMethodField()  # noqa: N815
    timestamp = serializers.DateTimeField(source="created_at")

    class Meta:
        model = Message
        fields = (
            "id",
            "channelId",
            "senderId",
            "senderName",
            "content",
            "kind",
            "attachmentRef",
            "timestamp",
        )

    def get_senderName(self, obj: Message) -> str:  # noqa: N802
        return obj.sender.display_name

    def get_attachmentRef(self, obj: Message) -> str | None:  # noqa: N802
        return obj.attachment_ref or None


class HistoryQuerySerializer(serializers.Serializer):
    before = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, default=50)
