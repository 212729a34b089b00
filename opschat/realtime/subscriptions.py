"""Authentication and channel binding for live connections."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from .exceptions import AccessDenied
from .exceptions import AuthenticationFailed
from .exceptions import Unauthenticated
from .rooms import room_for_channel
from .rooms import room_for_tenant

if TYPE_CHECKING:
    from opschat.chat.store import MembershipStore

    from .identity import JWTIdentityVerifier
    from .presence import PresenceTracker
    from .registry import Connection
    from .registry import ConnectionRegistry
    from .transport import Transport

logger = logging.getLogger(__name__)


class ChannelSubscriptionManager:
    def __init__(  # noqa: PLR0913
        self,
        registry: ConnectionRegistry,
        store: MembershipStore,
        verifier: JWTIdentityVerifier,
        presence: PresenceTracker,
        transport: Transport,
    ) -> None:
        self.registry = registry
        self.store = store
        self.verifier = verifier
        self.presence = presence
        self.transport = transport

    async def authenticate(  # noqa: PLR0913
        self,
        connection_id: str,
        account_id: int,
        display_name: str,
        tenant_id: int,
        credential: str,
    ) -> list[int] | None:
        """Verify ``credential`` and bind the connection to its channels.

        Returns the resolved channel ids, or None when the connection closed
        while the verifier or the store was being consulted.
        """

        verified_id = await self.verifier.verify(credential)
        if verified_id != account_id:
            logger.warning(
                "Credential for account %s presented as account %s on %s",
                verified_id,
                account_id,
                connection_id,
            )
            raise AuthenticationFailed
        if self.registry.lookup(connection_id) is None:
            return None

        account_tenant = await self.store.account_tenant(account_id)
        if account_tenant != tenant_id:
            logger.warning(
                "Account %s of tenant %s claimed tenant %s on %s",
                account_id,
                account_tenant,
                tenant_id,
                connection_id,
            )
            raise AuthenticationFailed
        if self.registry.lookup(connection_id) is None:
            return None

        channel_ids = await self.store.list_memberships(account_id, tenant_id)
        conn = self.registry.lookup(connection_id)
        if conn is None:
            return None

        previous = dataclasses.replace(conn, channels=set(conn.channels))
        conn = self.registry.register(connection_id, account_id, display_name, tenant_id)
        for channel_id in channel_ids:
            self.registry.add_channel(connection_id, channel_id)
        if previous.is_authenticated:
            await self._unbind(previous)

        for channel_id in channel_ids:
            await self.transport.enter_room(connection_id, room_for_channel(channel_id))
        await self.transport.enter_room(connection_id, room_for_tenant(tenant_id))
        logger.info(
            "Authenticated %s (%s) on %s with %d channels",
            display_name,
            account_id,
            connection_id,
            len(channel_ids),
        )

        await self.transport.emit(
            "authenticated",
            {"success": True, "channelIds": list(channel_ids)},
            to=connection_id,
        )
        await self.presence.mark_online(conn)
        return list(channel_ids)

    async def join_channel(self, connection_id: str, channel_id: int) -> None:
        conn = self.registry.lookup(connection_id)
        if conn is None or not conn.is_authenticated:
            raise Unauthenticated
        account_id = conn.account_id

        if not await self.store.has_membership(channel_id, account_id):
            logger.warning(
                "Account %s denied join to channel %s",
                account_id,
                channel_id,
            )
            raise AccessDenied
        conn = self.registry.lookup(connection_id)
        if conn is None or conn.account_id != account_id:
            return

        self.registry.add_channel(connection_id, channel_id)
        await self.transport.enter_room(connection_id, room_for_channel(channel_id))
        await self.transport.emit(
            "joined_channel",
            {"channelId": channel_id},
            to=connection_id,
        )
        await self.transport.emit(
            "user_joined_channel",
            {
                "accountId": conn.account_id,
                "displayName": conn.display_name,
                "channelId": channel_id,
            },
            room=room_for_channel(channel_id),
            skip_sid=connection_id,
        )

    async def _unbind(self, previous: Connection) -> None:
        """Leave the fan-out groups of a superseded authentication."""

        for channel_id in previous.channels:
            await self.transport.leave_room(
                previous.connection_id,
                room_for_channel(channel_id),
            )
        await self.transport.leave_room(
            previous.connection_id,
            room_for_tenant(previous.tenant_id),
        )
        await self.presence.release(previous)
