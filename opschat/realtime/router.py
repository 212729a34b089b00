"""Message fan-out.

Delivery is at-most-once: a broadcast frame the transport drops is not
retried, and nothing is deduplicated. Clients recover missed messages from
the history API after reconnecting.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import TYPE_CHECKING
from typing import Any

from opschat.chat.models import Message
from opschat.chat.store import MembershipRequired
from opschat.chat.store import StoreError

from .exceptions import InvalidPayload
from .exceptions import NotAMember
from .exceptions import PersistenceError
from .exceptions import Unauthenticated
from .rooms import room_for_channel

if TYPE_CHECKING:
    from opschat.chat.store import MembershipStore

    from .presence import PresenceTracker
    from .registry import Connection
    from .registry import ConnectionRegistry
    from .transport import Transport

logger = logging.getLogger(__name__)

MESSAGE_KINDS = frozenset(Message.Kind.values)
MAX_CONTENT_LENGTH = 10_000
MAX_ATTACHMENT_REF_LENGTH = Message._meta.get_field("attachment_ref").max_length


class MessageRouter:
    def __init__(
        self,
        registry: ConnectionRegistry,
        store: MembershipStore,
        presence: PresenceTracker,
        transport: Transport,
    ) -> None:
        self.registry = registry
        self.store = store
        self.presence = presence
        self.transport = transport
        # Insert and broadcast for one channel never interleave, so peers see
        # messages in commit order.
        self._channel_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def send_message(  # noqa: PLR0913
        self,
        connection_id: str,
        channel_id: int,
        content: str,
        kind: str = "text",
        attachment_ref: str | None = None,
    ) -> dict[str, Any] | None:
        """Persist a message and broadcast it to the whole channel.

        The sender is included in the broadcast. Returns the broadcast payload,
        or None if the sender disconnected while the message was being stored.
        """

        conn = self._subscribed(connection_id, channel_id)
        if kind not in MESSAGE_KINDS:
            msg = f"Unknown message kind: {kind}"
            raise InvalidPayload(msg)
        if not isinstance(content, str) or not content.strip():
            msg = "Message content is required"
            raise InvalidPayload(msg)
        if len(content) > MAX_CONTENT_LENGTH:
            msg = "Message content is too long"
            raise InvalidPayload(msg)
        if attachment_ref and len(attachment_ref) > MAX_ATTACHMENT_REF_LENGTH:
            msg = "Attachment reference is too long"
            raise InvalidPayload(msg)

        async with self._channel_locks[channel_id]:
            try:
                stored = await self.store.insert_message(
                    channel_id,
                    conn.account_id,
                    content,
                    kind,
                    attachment_ref,
                )
            except MembershipRequired as exc:
                self.registry.remove_channel(connection_id, channel_id)
                await self.transport.leave_room(
                    connection_id,
                    room_for_channel(channel_id),
                )
                raise NotAMember from exc
            except StoreError as exc:
                raise PersistenceError from exc

            payload = {
                "id": stored.id,
                "channelId": channel_id,
                "senderId": conn.account_id,
                "senderName": conn.display_name,
                "content": content,
                "kind": kind,
                "attachmentRef": attachment_ref,
                "timestamp": stored.created_at.isoformat(),
            }
            if self.registry.lookup(connection_id) is None:
                # Stored but not broadcast; peers pick it up from history.
                logger.info(
                    "Sender %s disconnected during send to channel %s",
                    connection_id,
                    channel_id,
                )
                return None
            await self.presence.clear_typing(conn, channel_id)
            await self.transport.emit(
                "new_message",
                payload,
                room=room_for_channel(channel_id),
            )
        return payload

    async def add_reaction(
        self,
        connection_id: str,
        channel_id: int,
        message_id: int,
        emoji: str,
    ) -> None:
        conn = self._subscribed(connection_id, channel_id)
        if not isinstance(emoji, str) or not emoji.strip():
            msg = "Reaction emoji is required"
            raise InvalidPayload(msg)
        await self.transport.emit(
            "message_reaction",
            {
                "messageId": message_id,
                "emoji": emoji,
                "accountId": conn.account_id,
                "displayName": conn.display_name,
                "channelId": channel_id,
                "action": "add",
            },
            room=room_for_channel(channel_id),
            skip_sid=connection_id,
        )

    def _subscribed(self, connection_id: str, channel_id: int) -> Connection:
        conn = self.registry.lookup(connection_id)
        if conn is None or not conn.is_authenticated:
            raise Unauthenticated
        if channel_id not in conn.channels:
            raise NotAMember
        return conn
