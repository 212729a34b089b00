"""Membership store consumed by the realtime layer.

Thin async facade over the chat models. Each method is a single
authorize-or-act query; nothing here spans more than one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from channels.db import database_sync_to_async
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db import transaction

from .models import ChannelMembership
from .models import Message

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)

User = get_user_model()


class StoreError(Exception):
    """A store write could not be completed."""


class MembershipRequired(StoreError):
    """The sender held no membership for the channel at insert time."""


@dataclass(frozen=True)
class StoredMessage:
    id: int
    created_at: datetime


class MembershipStore:
    @database_sync_to_async
    def list_memberships(self, account_id: int, tenant_id: int) -> list[int]:
        """Channel ids ``account_id`` is a member of inside ``tenant_id``."""

        return list(
            ChannelMembership.objects.filter(
                user_id=account_id,
                channel__enterprise_id=tenant_id,
            )
            .order_by("channel_id")
            .values_list("channel_id", flat=True),
        )

    @database_sync_to_async
    def account_tenant(self, account_id: int) -> int | None:
        """The enterprise ``account_id`` belongs to, or None if unassigned."""

        return (
            User.objects.filter(pk=account_id)
            .values_list("enterprise_id", flat=True)
            .first()
        )

    @database_sync_to_async
    def has_membership(self, channel_id: int, account_id: int) -> bool:
        return ChannelMembership.objects.filter(
            channel_id=channel_id,
            user_id=account_id,
        ).exists()

    @database_sync_to_async
    def insert_message(  # noqa: PLR0913
        self,
        channel_id: int,
        sender_id: int,
        content: str,
        kind: str,
        attachment_ref: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> StoredMessage:
        try:
            with transaction.atomic():
                is_member = ChannelMembership.objects.filter(
                    channel_id=channel_id,
                    user_id=sender_id,
                ).exists()
                if not is_member:
                    msg = f"user {sender_id} is not a member of channel {channel_id}"
                    raise MembershipRequired(msg)
                message = Message.objects.create(
                    channel_id=channel_id,
                    sender_id=sender_id,
                    content=content,
                    kind=kind,
                    attachment_ref=attachment_ref or "",
                    metadata=metadata,
                )
        except DatabaseError as exc:
            logger.exception("Failed to persist message in channel %s", channel_id)
            msg = "message insert failed"
            raise StoreError(msg) from exc
        return StoredMessage(id=message.pk, created_at=message.created_at)
