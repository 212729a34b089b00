from __future__ import annotations

from django.conf import settings
from django.db.models import F
from rest_framework import mixins
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from opschat.chat.models import Channel
from opschat.chat.models import Message

from .serializers import ChannelSerializer
from .serializers import HistoryQuerySerializer
from .serializers import MessageSerializer


class ChannelViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    GenericViewSet,
):
    """Channels the authenticated user is a member of.

    - list / retrieve: membership-scoped; other channels are 404
    - messages: history backfill, newest page first, returned oldest-first
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ChannelSerializer
    pagination_class = None

    def get_queryset(self):
        user = self.request.user
        return (
            Channel.objects.filter(
                enterprise_id=user.enterprise_id,
                memberships__user=user,
            )
            .annotate(member_role=F("memberships__role"))
            .order_by("name")
        )

    @action(detail=True, methods=["get"])
    def messages(self, request, pk=None):
        channel = self.get_object()
        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        limit = min(query.validated_data["limit"], settings.CHAT_HISTORY_MAX_LIMIT)

        qs = Message.objects.filter(channel=channel).select_related("sender")
        before = query.validated_data.get("before")
        if before is not None:
            qs = qs.filter(created_at__lt=before)
        page = list(qs.order_by("-created_at", "-id")[:limit])
        page.reverse()
        return Response(MessageSerializer(page, many=True).data)
