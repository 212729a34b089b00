from http import HTTPStatus
from unittest import mock

import pytest
from django.db import connection as dj_conn

from opschat.realtime.socketio import hub


class DummyDbError(Exception):
    """Synthetic DB error for testing."""


@pytest.fixture
def healthy_redis():
    with mock.patch("config.health.redis.Redis.ping", return_value=True):
        yield


@pytest.mark.django_db
def test_health_ok(client, healthy_redis):
    resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["status"] == "ok"
    assert data["components"]["db"]["ok"] is True
    assert data["components"]["redis"]["ok"] is True
    assert "timestamp" in data


@pytest.mark.django_db
def test_health_reports_realtime_connections(client, healthy_redis):
    hub.connect("health-probe")
    try:
        resp = client.get("/health/")
    finally:
        hub.registry.remove("health-probe")
    realtime = resp.json()["realtime"]
    assert realtime["connections"] >= 1
    assert realtime["accounts"] == 0


@pytest.mark.django_db
def test_health_degraded_when_redis_fails(client):
    with mock.patch(
        "config.health.redis.Redis.ping",
        side_effect=TimeoutError("redis timeout"),
    ):
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["components"]["redis"]["ok"] is False
    assert data["status"] == "degraded"


@pytest.mark.django_db
def test_health_degraded_when_db_fails(client, monkeypatch, healthy_redis):
    msg = "db down"

    def raise_cursor():
        raise DummyDbError(msg)

    monkeypatch.setattr(dj_conn, "cursor", raise_cursor, raising=True)
    resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["components"]["db"]["ok"] is False
