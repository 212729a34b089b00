"""Ephemeral typing and presence state.

Nothing here is persisted or replayed: a connection that joins while somebody
is typing only learns about it from the next explicit event.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import InvalidPayload
from .exceptions import NotAMember
from .exceptions import Unauthenticated
from .rooms import room_for_channel
from .rooms import room_for_tenant

if TYPE_CHECKING:
    from .registry import Connection
    from .registry import ConnectionRegistry
    from .transport import Transport

logger = logging.getLogger(__name__)

ONLINE = "online"
AWAY = "away"
BUSY = "busy"
OFFLINE = "offline"
SELECTABLE_STATUSES = frozenset({ONLINE, AWAY, BUSY})


@dataclass
class TypingEntry:
    connection_id: str
    tenant_id: int
    display_name: str
    started_at: float


class PresenceTracker:
    def __init__(self, registry: ConnectionRegistry, transport: Transport) -> None:
        self.registry = registry
        self.transport = transport
        # channel id -> account id -> entry
        self._typing: dict[int, dict[int, TypingEntry]] = {}
        # (tenant id, account id) -> status
        self._status: dict[tuple[int, int], str] = {}

    # Typing -----------------------------------------------------------------

    def typing_in(self, channel_id: int) -> set[int]:
        return set(self._typing.get(channel_id, {}))

    def is_typing(self, channel_id: int, account_id: int) -> bool:
        return account_id in self._typing.get(channel_id, {})

    async def typing_start(self, connection_id: str, channel_id: int) -> None:
        conn = self._subscribed(connection_id, channel_id)
        self._typing.setdefault(channel_id, {})[conn.account_id] = TypingEntry(
            connection_id=conn.connection_id,
            tenant_id=conn.tenant_id,
            display_name=conn.display_name,
            started_at=time.monotonic(),
        )
        await self.transport.emit(
            "user_typing",
            {
                "accountId": conn.account_id,
                "displayName": conn.display_name,
                "channelId": channel_id,
            },
            room=room_for_channel(channel_id),
            skip_sid=self._account_sids(conn.tenant_id, conn.account_id, conn),
        )

    async def typing_stop(self, connection_id: str, channel_id: int) -> None:
        conn = self._subscribed(connection_id, channel_id)
        await self.clear_typing(conn, channel_id)

    async def clear_typing(self, conn: Connection, channel_id: int) -> bool:
        """Drop ``conn``'s account from the channel's typing set.

        Typing is tracked per account, so any of the account's connections
        may clear it. Peers are only notified when the account was actually
        typing; none of the account's own connections are.
        """

        entry = self._pop_typing(channel_id, conn.account_id)
        if entry is None:
            return False
        await self._emit_stopped(conn.account_id, entry, channel_id, conn)
        return True

    async def expire_typing(self, now: float, timeout: float) -> list[tuple[int, int]]:
        stale = [
            (channel_id, account_id)
            for channel_id, entries in self._typing.items()
            for account_id, entry in entries.items()
            if now - entry.started_at >= timeout
        ]
        expired = []
        for channel_id, account_id in stale:
            entry = self._pop_typing(channel_id, account_id)
            if entry is None:
                # Cleared by a stop, send or disconnect while we were emitting.
                continue
            logger.debug("Typing expired for %s in channel %s", account_id, channel_id)
            expired.append((channel_id, account_id))
            await self._emit_stopped(account_id, entry, channel_id)
        return expired

    # Presence ---------------------------------------------------------------

    def status(self, tenant_id: int, account_id: int) -> str:
        return self._status.get((tenant_id, account_id), OFFLINE)

    async def mark_online(self, conn: Connection) -> None:
        key = (conn.tenant_id, conn.account_id)
        if self._status.get(key, OFFLINE) == OFFLINE:
            self._status[key] = ONLINE
        await self.transport.emit(
            "user_online",
            {"accountId": conn.account_id, "displayName": conn.display_name},
            room=room_for_tenant(conn.tenant_id),
            skip_sid=conn.connection_id,
        )

    async def update_presence(self, connection_id: str, status: str) -> None:
        conn = self.registry.lookup(connection_id)
        if conn is None or not conn.is_authenticated:
            raise Unauthenticated
        if status not in SELECTABLE_STATUSES:
            msg = f"Unknown presence status: {status}"
            raise InvalidPayload(msg)
        self._status[(conn.tenant_id, conn.account_id)] = status
        await self.transport.emit(
            "user_presence_update",
            {"accountId": conn.account_id, "status": status},
            room=room_for_tenant(conn.tenant_id),
            skip_sid=conn.connection_id,
        )

    async def release(self, conn: Connection) -> None:
        """Tear down the typing and presence state derived from ``conn``.

        Call after ``conn`` left the registry (or was re-registered), so the
        account's remaining sessions can be told apart from this one.
        """

        if not conn.is_authenticated:
            return
        for channel_id in sorted(conn.channels):
            entry = self._typing.get(channel_id, {}).get(conn.account_id)
            if entry is not None and entry.connection_id == conn.connection_id:
                await self.clear_typing(conn, channel_id)

        if self.registry.connections_for_account(conn.tenant_id, conn.account_id):
            return
        self._status.pop((conn.tenant_id, conn.account_id), None)
        await self.transport.emit(
            "user_offline",
            {"accountId": conn.account_id, "displayName": conn.display_name},
            room=room_for_tenant(conn.tenant_id),
            skip_sid=conn.connection_id,
        )

    # Helpers ----------------------------------------------------------------

    def _subscribed(self, connection_id: str, channel_id: int) -> Connection:
        conn = self.registry.lookup(connection_id)
        if conn is None or not conn.is_authenticated:
            raise Unauthenticated
        if channel_id not in conn.channels:
            raise NotAMember
        return conn

    def _pop_typing(self, channel_id: int, account_id: int) -> TypingEntry | None:
        entries = self._typing.get(channel_id)
        if not entries or account_id not in entries:
            return None
        entry = entries.pop(account_id)
        if not entries:
            del self._typing[channel_id]
        return entry

    def _account_sids(
        self,
        tenant_id: int,
        account_id: int,
        conn: Connection | None = None,
    ) -> list[str]:
        """Every live connection of the account, plus ``conn`` if given.

        ``conn`` may already be gone from the registry (disconnect).
        """

        sids = {
            c.connection_id
            for c in self.registry.connections_for_account(tenant_id, account_id)
        }
        if conn is not None:
            sids.add(conn.connection_id)
        return sorted(sids)

    async def _emit_stopped(
        self,
        account_id: int,
        entry: TypingEntry,
        channel_id: int,
        conn: Connection | None = None,
    ) -> None:
        skip = set(self._account_sids(entry.tenant_id, account_id, conn))
        skip.add(entry.connection_id)
        await self.transport.emit(
            "user_stopped_typing",
            {
                "accountId": account_id,
                "displayName": entry.display_name,
                "channelId": channel_id,
            },
            room=room_for_channel(channel_id),
            skip_sid=sorted(skip),
        )
