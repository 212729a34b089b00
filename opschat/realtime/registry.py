"""In-process table of live connections.

The registry is owned by a :class:`~opschat.realtime.hub.ChatHub` instance.
All methods are synchronous so that, on the single event loop, no handler can
observe a half-applied mutation. Handlers re-check :meth:`lookup` after every
``await`` because the connection may have closed in between.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from dataclasses import field

from .exceptions import Unauthenticated


@dataclass
class Connection:
    connection_id: str
    account_id: int | None = None
    display_name: str = ""
    tenant_id: int | None = None
    channels: set[int] = field(default_factory=set)
    connected_at: float = field(default_factory=time.monotonic)

    @property
    def is_authenticated(self) -> bool:
        return self.account_id is not None


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def open(self, connection_id: str) -> Connection:
        """Track a transport connection that has not authenticated yet."""

        conn = self._connections.get(connection_id)
        if conn is None:
            conn = Connection(connection_id=connection_id)
            self._connections[connection_id] = conn
        return conn

    def register(
        self,
        connection_id: str,
        account_id: int | None,
        display_name: str,
        tenant_id: int,
    ) -> Connection:
        """Bind a verified identity to ``connection_id``.

        The subscribed channel set starts empty on every call; callers add the
        channels resolved for this authentication.
        """

        if account_id is None:
            raise Unauthenticated
        conn = self.open(connection_id)
        conn.account_id = account_id
        conn.display_name = display_name
        conn.tenant_id = tenant_id
        conn.channels = set()
        return conn

    def add_channel(self, connection_id: str, channel_id: int) -> None:
        conn = self._connections.get(connection_id)
        if conn is not None:
            conn.channels.add(channel_id)

    def remove_channel(self, connection_id: str, channel_id: int) -> None:
        conn = self._connections.get(connection_id)
        if conn is not None:
            conn.channels.discard(channel_id)

    def lookup(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def remove(self, connection_id: str) -> Connection | None:
        return self._connections.pop(connection_id, None)

    def connections_for_account(
        self,
        tenant_id: int | None,
        account_id: int,
    ) -> list[Connection]:
        return [
            c
            for c in self._connections.values()
            if c.account_id == account_id and c.tenant_id == tenant_id
        ]

    def stale_unauthenticated(self, now: float, timeout: float) -> list[str]:
        return [
            c.connection_id
            for c in self._connections.values()
            if not c.is_authenticated and now - c.connected_at >= timeout
        ]

    def count(self) -> int:
        return len(self._connections)

    def authenticated_count(self) -> int:
        return sum(1 for c in self._connections.values() if c.is_authenticated)

    def account_count(self) -> int:
        return len(
            {
                (c.tenant_id, c.account_id)
                for c in self._connections.values()
                if c.is_authenticated
            },
        )
