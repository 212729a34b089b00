"""Connection event dispatch.

``ChatHub`` owns the per-process realtime state (connection registry, typing
and presence tracker) for one socket server. It is created with the server
and never shared across processes: scaling past one process needs an
external broadcast bus behind :class:`~opschat.realtime.transport.Transport`.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING
from typing import Any

from opschat.chat.store import MembershipStore

from .exceptions import AuthenticationFailed
from .exceptions import InvalidPayload
from .exceptions import RealtimeError
from .identity import JWTIdentityVerifier
from .presence import PresenceTracker
from .registry import ConnectionRegistry
from .rooms import room_for_channel
from .rooms import room_for_tenant
from .router import MessageRouter
from .subscriptions import ChannelSubscriptionManager

if TYPE_CHECKING:
    from .transport import Transport

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _coerce_id(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or value is None:
        msg = f"{key} is required"
        raise InvalidPayload(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    msg = f"{key} must be an integer"
    raise InvalidPayload(msg)


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        msg = f"{key} must be a string"
        raise InvalidPayload(msg)
    return value


class ChatHub:
    def __init__(  # noqa: PLR0913
        self,
        transport: Transport,
        *,
        registry: ConnectionRegistry | None = None,
        store: MembershipStore | None = None,
        verifier: JWTIdentityVerifier | None = None,
        typing_timeout: float = 0,
        auth_timeout: float = 0,
    ) -> None:
        self.transport = transport
        self.registry = registry or ConnectionRegistry()
        self.store = store or MembershipStore()
        self.verifier = verifier or JWTIdentityVerifier()
        self.typing_timeout = typing_timeout
        self.auth_timeout = auth_timeout
        self.presence = PresenceTracker(self.registry, transport)
        self.subscriptions = ChannelSubscriptionManager(
            self.registry,
            self.store,
            self.verifier,
            self.presence,
            transport,
        )
        self.router = MessageRouter(self.registry, self.store, self.presence, transport)
        self._handlers = {
            "authenticate": self._on_authenticate,
            "join_channel": self._on_join_channel,
            "send_message": self._on_send_message,
            "typing_start": self._on_typing_start,
            "typing_stop": self._on_typing_stop,
            "update_presence": self._on_update_presence,
            "add_reaction": self._on_add_reaction,
        }

    # Lifecycle --------------------------------------------------------------

    def connect(self, connection_id: str) -> None:
        self.registry.open(connection_id)
        logger.info("Connection opened: %s", connection_id)

    async def disconnect(self, connection_id: str) -> None:
        """Drop the connection and notify peers. Safe to call twice."""

        conn = self.registry.remove(connection_id)
        if conn is None:
            return
        logger.info(
            "Connection closed: %s (account %s)",
            connection_id,
            conn.account_id,
        )
        if not conn.is_authenticated:
            return
        await self.presence.release(conn)
        for channel_id in conn.channels:
            await self.transport.leave_room(connection_id, room_for_channel(channel_id))
        await self.transport.leave_room(connection_id, room_for_tenant(conn.tenant_id))

    async def sweep(self, now: float | None = None) -> None:
        """Expire stale typing entries and idle unauthenticated connections."""

        now = time.monotonic() if now is None else now
        if self.typing_timeout > 0:
            await self.presence.expire_typing(now, self.typing_timeout)
        if self.auth_timeout > 0:
            for connection_id in self.registry.stale_unauthenticated(
                now,
                self.auth_timeout,
            ):
                logger.info("Closing unauthenticated connection %s", connection_id)
                self.registry.remove(connection_id)
                await self.transport.disconnect(connection_id)

    # Dispatch ---------------------------------------------------------------

    async def handle(self, connection_id: str, event: str, data: Any) -> None:
        """Run the handler for ``event``, reporting failures to the sender only."""

        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("Ignoring unknown event %s from %s", event, connection_id)
            return
        try:
            if not isinstance(data, dict):
                msg = "Payload must be an object"
                raise InvalidPayload(msg)
            await handler(connection_id, data)
        except RealtimeError as exc:
            await self._report(connection_id, exc)
        except Exception:
            logger.exception("Unhandled error in %s handler for %s", event, connection_id)
            failure = (
                AuthenticationFailed("Authentication failed")
                if event == "authenticate"
                else RealtimeError(INTERNAL_ERROR_MESSAGE)
            )
            await self._report(connection_id, failure)

    async def _report(self, connection_id: str, exc: RealtimeError) -> None:
        if self.registry.lookup(connection_id) is None:
            return
        await self.transport.emit(exc.event, exc.as_payload(), to=connection_id)

    # Handlers ---------------------------------------------------------------

    async def _on_authenticate(self, connection_id: str, data: dict[str, Any]) -> None:
        try:
            account_id = _coerce_id(data, "accountId")
            tenant_id = _coerce_id(data, "tenantId")
        except InvalidPayload as exc:
            raise AuthenticationFailed(exc.message) from exc
        display_name = _optional_str(data, "displayName") or str(account_id)
        credential = data.get("credential")
        await self.subscriptions.authenticate(
            connection_id,
            account_id,
            display_name,
            tenant_id,
            credential,
        )

    async def _on_join_channel(self, connection_id: str, data: dict[str, Any]) -> None:
        await self.subscriptions.join_channel(
            connection_id,
            _coerce_id(data, "channelId"),
        )

    async def _on_send_message(self, connection_id: str, data: dict[str, Any]) -> None:
        await self.router.send_message(
            connection_id,
            _coerce_id(data, "channelId"),
            data.get("content"),
            _optional_str(data, "kind") or "text",
            _optional_str(data, "attachmentRef"),
        )

    async def _on_typing_start(self, connection_id: str, data: dict[str, Any]) -> None:
        await self.presence.typing_start(connection_id, _coerce_id(data, "channelId"))

    async def _on_typing_stop(self, connection_id: str, data: dict[str, Any]) -> None:
        await self.presence.typing_stop(connection_id, _coerce_id(data, "channelId"))

    async def _on_update_presence(
        self,
        connection_id: str,
        data: dict[str, Any],
    ) -> None:
        await self.presence.update_presence(
            connection_id,
            _optional_str(data, "status") or "",
        )

    async def _on_add_reaction(self, connection_id: str, data: dict[str, Any]) -> None:
        await self.router.add_reaction(
            connection_id,
            _coerce_id(data, "channelId"),
            _coerce_id(data, "messageId"),
            _optional_str(data, "emoji") or "",
        )
