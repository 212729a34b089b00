"""Socket.IO server for the chat frontend.

Frontend convention:
- URL base: ws://<host>:8000
- Socket.IO path: /ws/chat/
- Auth: an ``authenticate`` event carrying the simplejwt access token as
  ``credential``, sent right after connecting.

Connections are accepted unauthenticated; every other event is refused with
an ``error`` event until ``authenticate`` succeeds.
"""

from __future__ import annotations

import logging
from typing import Any

import socketio
from django.conf import settings

from .hub import ChatHub

logger = logging.getLogger(__name__)


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=settings.REALTIME_CORS_ALLOWED_ORIGINS,
    # Handlers for one client run inline, preserving per-connection order.
    async_handlers=False,
    logger=False,
    engineio_logger=False,
)


class ChatNamespace(socketio.AsyncNamespace):
    def __init__(self, hub: ChatHub, namespace: str | None = None):
        super().__init__(namespace)
        self.hub = hub
        self._sweeper = None

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None):
        self.hub.connect(sid)
        self._ensure_sweeper()

    async def on_disconnect(self, sid: str, reason: Any = None):
        await self.hub.disconnect(sid)

    async def on_authenticate(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "authenticate", data)

    async def on_join_channel(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "join_channel", data)

    async def on_send_message(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "send_message", data)

    async def on_typing_start(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "typing_start", data)

    async def on_typing_stop(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "typing_stop", data)

    async def on_update_presence(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "update_presence", data)

    async def on_add_reaction(self, sid: str, data: Any = None):
        await self.hub.handle(sid, "add_reaction", data)

    def _ensure_sweeper(self) -> None:
        if self._sweeper is not None:
            return
        if self.hub.typing_timeout <= 0 and self.hub.auth_timeout <= 0:
            return
        self._sweeper = self.server.start_background_task(self._sweep_forever)

    async def _sweep_forever(self) -> None:
        interval = settings.REALTIME_SWEEP_INTERVAL
        while True:
            await self.server.sleep(interval)
            try:
                await self.hub.sweep()
            except Exception:
                logger.exception("Realtime sweep failed")


hub = ChatHub(
    sio,
    typing_timeout=settings.REALTIME_TYPING_TIMEOUT,
    auth_timeout=settings.REALTIME_AUTH_TIMEOUT,
)
sio.register_namespace(ChatNamespace(hub, "/"))
