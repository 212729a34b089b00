from unittest import mock

import pytest
from asgiref.sync import async_to_sync
from django.db import DatabaseError

from opschat.chat.models import ChannelMembership
from opschat.chat.models import Message
from opschat.chat.store import MembershipRequired
from opschat.chat.store import MembershipStore
from opschat.chat.store import StoreError

from .factories import create_channel
from .factories import create_enterprise
from .factories import create_user

pytestmark = pytest.mark.django_db(transaction=True)


class TestMembershipStore:
    def setup_method(self):
        self.store = MembershipStore()
        self.acme = create_enterprise()
        self.globex = create_enterprise("Globex", "@globex.test")
        self.alice = create_user("alice", self.acme)
        self.bob = create_user("bob", self.acme)
        self.ops = create_channel("ops", self.alice, members=[self.bob])
        self.random = create_channel("random", self.alice)
        self.private = create_channel("board", self.bob)
        # A membership that points across tenants is never listed.
        self.foreign = create_channel("ops", create_user("gina", self.globex))
        ChannelMembership.objects.create(channel=self.foreign, user=self.alice)

    def test_list_memberships_is_tenant_scoped(self):
        ids = async_to_sync(self.store.list_memberships)(self.alice.id, self.acme.id)
        assert ids == sorted([self.ops.id, self.random.id])
        assert async_to_sync(self.store.list_memberships)(self.bob.id, self.globex.id) == []

    def test_account_tenant(self):
        assert async_to_sync(self.store.account_tenant)(self.alice.id) == self.acme.id
        stray = create_user("stray")
        assert async_to_sync(self.store.account_tenant)(stray.id) is None
        assert async_to_sync(self.store.account_tenant)(0) is None

    def test_has_membership(self):
        assert async_to_sync(self.store.has_membership)(self.ops.id, self.bob.id)
        assert not async_to_sync(self.store.has_membership)(self.random.id, self.bob.id)

    def test_insert_message(self):
        stored = async_to_sync(self.store.insert_message)(
            self.ops.id,
            self.bob.id,
            "handover at 7",
            Message.Kind.HANDOVER,
            "files/roster.pdf",
        )
        message = Message.objects.get(pk=stored.id)
        assert message.content == "handover at 7"
        assert message.kind == Message.Kind.HANDOVER
        assert message.attachment_ref == "files/roster.pdf"
        assert message.created_at == stored.created_at

    def test_insert_requires_membership(self):
        with pytest.raises(MembershipRequired):
            async_to_sync(self.store.insert_message)(
                self.random.id,
                self.bob.id,
                "hi",
                Message.Kind.TEXT,
            )
        assert not Message.objects.filter(channel=self.random).exists()

    def test_database_failure_becomes_store_error(self):
        with (
            mock.patch(
                "opschat.chat.store.Message.objects.create",
                side_effect=DatabaseError("disk I/O error"),
            ),
            pytest.raises(StoreError),
        ):
            async_to_sync(self.store.insert_message)(
                self.ops.id,
                self.bob.id,
                "hi",
                Message.Kind.TEXT,
            )
