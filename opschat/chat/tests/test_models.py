import pytest
from django.db import IntegrityError

from opschat.chat.models import Channel
from opschat.chat.models import ChannelMembership
from opschat.chat.models import Message
from opschat.enterprises.models import Department

from .factories import create_channel
from .factories import create_enterprise
from .factories import create_user

pytestmark = pytest.mark.django_db


class TestChannel:
    def setup_method(self):
        self.acme = create_enterprise()
        self.owner = create_user("owner", self.acme)

    def test_creator_becomes_admin_member(self):
        channel = create_channel("ops", self.owner)
        membership = ChannelMembership.objects.get(channel=channel, user=self.owner)
        assert membership.role == ChannelMembership.Role.ADMIN

    def test_channel_names_are_unique_per_enterprise(self):
        create_channel("ops", self.owner)
        other = create_enterprise("Globex", "@globex.test")
        create_channel("ops", create_user("g1", other))
        with pytest.raises(IntegrityError):
            create_channel("ops", self.owner)

    def test_membership_is_unique(self):
        channel = create_channel("ops", self.owner)
        with pytest.raises(IntegrityError):
            ChannelMembership.objects.create(channel=channel, user=self.owner)

    def test_self_service_joinability(self):
        night = Department.objects.create(
            enterprise=self.acme,
            name="Night shift",
            code="NS",
        )
        day = Department.objects.create(enterprise=self.acme, name="Day", code="DS")
        nurse = create_user("nurse", self.acme, department=night)
        outsider = create_user("outsider", create_enterprise("Globex", "@globex.test"))

        public = create_channel("lobby", self.owner)
        private = create_channel("board", self.owner, kind=Channel.Kind.PRIVATE)
        night_room = create_channel(
            "night",
            self.owner,
            kind=Channel.Kind.DEPARTMENT,
            department=night,
        )
        day_room = create_channel(
            "day",
            self.owner,
            kind=Channel.Kind.DEPARTMENT,
            department=day,
        )

        assert public.is_self_service_joinable(nurse)
        assert not public.is_self_service_joinable(outsider)
        assert not private.is_self_service_joinable(nurse)
        assert night_room.is_self_service_joinable(nurse)
        assert not day_room.is_self_service_joinable(nurse)


def test_messages_are_ordered_oldest_first():
    acme = create_enterprise()
    owner = create_user("owner", acme)
    channel = create_channel("ops", owner)
    first = Message.objects.create(channel=channel, sender=owner, content="1")
    second = Message.objects.create(channel=channel, sender=owner, content="2")
    assert list(channel.messages.all()) == [first, second]
    assert first.kind == Message.Kind.TEXT
    assert first.attachment_ref == ""
