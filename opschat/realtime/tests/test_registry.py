import pytest

from opschat.realtime.exceptions import Unauthenticated
from opschat.realtime.registry import ConnectionRegistry


class TestConnectionRegistry:
    def setup_method(self):
        self.registry = ConnectionRegistry()

    def test_open_tracks_unauthenticated_connection(self):
        conn = self.registry.open("s1")
        assert conn.connection_id == "s1"
        assert not conn.is_authenticated
        assert self.registry.open("s1") is conn
        assert self.registry.count() == 1
        assert self.registry.authenticated_count() == 0

    def test_register_binds_identity_and_resets_channels(self):
        self.registry.register("s1", 5, "Eve", 1)
        self.registry.add_channel("s1", 10)
        conn = self.registry.register("s1", 5, "Eve", 1)
        assert conn.account_id == 5
        assert conn.tenant_id == 1
        assert conn.channels == set()

    def test_register_requires_an_account(self):
        with pytest.raises(Unauthenticated):
            self.registry.register("s1", None, "Eve", 1)

    def test_channel_changes_on_unknown_connection_are_ignored(self):
        self.registry.add_channel("ghost", 10)
        self.registry.remove_channel("ghost", 10)
        assert self.registry.lookup("ghost") is None

    def test_remove_is_idempotent(self):
        self.registry.register("s1", 5, "Eve", 1)
        assert self.registry.remove("s1").account_id == 5
        assert self.registry.remove("s1") is None
        assert self.registry.count() == 0

    def test_connections_for_account_is_tenant_scoped(self):
        self.registry.register("s1", 5, "Eve", 1)
        self.registry.register("s2", 5, "Eve", 1)
        self.registry.register("s3", 5, "Eve", 2)
        self.registry.register("s4", 6, "Mallory", 1)
        sids = {c.connection_id for c in self.registry.connections_for_account(1, 5)}
        assert sids == {"s1", "s2"}
        assert self.registry.account_count() == 3

    def test_stale_unauthenticated(self):
        old = self.registry.open("s1")
        self.registry.register("s2", 5, "Eve", 1)
        now = old.connected_at + 30
        assert self.registry.stale_unauthenticated(now, 10) == ["s1"]
        assert self.registry.stale_unauthenticated(now, 60) == []
