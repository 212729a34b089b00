from __future__ import annotations

from typing import Any
from typing import Protocol


class Transport(Protocol):
    """The subset of ``socketio.AsyncServer`` the realtime layer relies on.

    Emits are fire-and-forget: a frame dropped by the transport is not retried.
    """

    async def emit(
        self,
        event: str,
        data: Any = None,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | list[str] | None = None,
        namespace: str | None = None,
    ) -> None: ...

    async def enter_room(
        self,
        sid: str,
        room: str,
        namespace: str | None = None,
    ) -> None: ...

    async def leave_room(
        self,
        sid: str,
        room: str,
        namespace: str | None = None,
    ) -> None: ...

    async def disconnect(self, sid: str, namespace: str | None = None) -> None: ...
