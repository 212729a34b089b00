from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model

from opschat.chat.models import Channel
from opschat.chat.models import ChannelMembership
from opschat.enterprises.models import Enterprise

if TYPE_CHECKING:
    from collections.abc import Iterable

    from opschat.enterprises.models import Department

User = get_user_model()
TEST_PASSWORD = "TestPass123!"  # noqa: S105


def create_enterprise(name: str = "Acme", domain: str = "@acme.test") -> Enterprise:
    return Enterprise.objects.create(
        name=name,
        contact_email=f"ops{domain}",
        domains=[domain],
    )


def create_user(
    username: str,
    enterprise: Enterprise | None = None,
    *,
    department: Department | None = None,
):
    domain = enterprise.domains[0] if enterprise else "@example.com"
    return User.objects.create_user(
        username=username,
        email=f"{username}{domain}",
        password=TEST_PASSWORD,
        enterprise=enterprise,
        department=department,
    )


def create_channel(
    name: str,
    creator,
    *,
    members: Iterable = (),
    kind: str = Channel.Kind.PUBLIC,
    department: Department | None = None,
) -> Channel:
    channel = Channel.objects.create(
        enterprise=creator.enterprise,
        name=name,
        kind=kind,
        department=department,
        created_by=creator,
    )
    for user in members:
        ChannelMembership.objects.get_or_create(channel=channel, user=user)
    return channel
