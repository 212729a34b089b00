"""Fan-out group names.

Rooms are a transport detail; clients only ever see channel and tenant ids.
"""

from __future__ import annotations


def room_for_channel(channel_id: int) -> str:
    return f"channel_{int(channel_id)}"


def room_for_tenant(tenant_id: int) -> str:
    return f"tenant_{int(tenant_id)}"
