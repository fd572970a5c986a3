"""
Tests for the websocket change-feed adapter with the realtime client replaced by a fake.
"""

from __future__ import annotations

import asyncio

import pytest

from clinic.application.exceptions import SubscriptionError
from clinic.infrastructure.supabase import realtime_feed
from clinic.infrastructure.supabase.realtime_feed import RealtimeChangeFeed
from clinic.infrastructure.supabase.supabase_client import SupabaseClient


class FakeChannel:
    def __init__(self, name: str, fail_subscribe: bool = False, fail_unsubscribe: bool = False) -> None:
        self.name = name
        self.fail_subscribe = fail_subscribe
        self.fail_unsubscribe = fail_unsubscribe
        self.bindings: list[tuple] = []
        self.unsubscribe_calls = 0

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.bindings.append((event, schema, table, callback))
        return self

    async def subscribe(self, callback=None):
        if self.fail_subscribe:
            raise ConnectionError("channel join timed out")
        if callback:
            callback(realtime_feed.RealtimeSubscribeStates.SUBSCRIBED, None)
        return self

    async def unsubscribe(self):
        self.unsubscribe_calls += 1
        if self.fail_unsubscribe:
            raise ConnectionError("socket gone")


class FakeSocket:
    instances: list["FakeSocket"] = []
    fail_subscribe = False
    fail_unsubscribe = False

    def __init__(self, url: str, token: str, **kwargs) -> None:
        self.url = url
        self.token = token
        self.auth_tokens: list[str] = []
        self.channels: list[FakeChannel] = []
        self.close_calls = 0
        FakeSocket.instances.append(self)

    async def connect(self):
        return None

    async def set_auth(self, token):
        self.auth_tokens.append(token)

    def channel(self, name, params=None):
        channel = FakeChannel(name, FakeSocket.fail_subscribe, FakeSocket.fail_unsubscribe)
        self.channels.append(channel)
        return channel

    async def close(self):
        self.close_calls += 1


@pytest.fixture
def fake_socket(monkeypatch):
    FakeSocket.instances = []
    FakeSocket.fail_subscribe = False
    FakeSocket.fail_unsubscribe = False
    monkeypatch.setattr(realtime_feed, "AsyncRealtimeClient", FakeSocket)
    return FakeSocket


def _feed(access_token: str | None = None) -> RealtimeChangeFeed:
    client = SupabaseClient("https://project.supabase.test", "anon-key")
    client.access_token = access_token
    return RealtimeChangeFeed(client)


def test_subscribe_binds_all_events_on_the_table(fake_socket):
    def callback(payload):
        return None

    asyncio.run(_feed(access_token="operator-token").subscribe("appointments_changes", "public", "appointments", callback))

    socket = fake_socket.instances[0]
    channel = socket.channels[0]
    assert socket.url == "wss://project.supabase.test/realtime/v1"
    assert socket.token == "anon-key"
    assert socket.auth_tokens == ["operator-token"]
    assert channel.name == "appointments_changes"
    assert channel.bindings == [("*", "public", "appointments", callback)]
    assert socket.close_calls == 0


def test_failed_subscribe_raises_and_closes_the_socket(fake_socket):
    fake_socket.fail_subscribe = True

    with pytest.raises(SubscriptionError):
        asyncio.run(_feed().subscribe("appointments_changes", "public", "appointments", lambda payload: None))

    socket = fake_socket.instances[0]
    assert socket.auth_tokens == []
    assert socket.close_calls == 1


def test_unsubscribe_touches_the_channel_once(fake_socket):
    async def run():
        subscription = await _feed().subscribe("appointments_changes", "public", "appointments", lambda payload: None)
        await subscription.unsubscribe()
        await subscription.unsubscribe()

    asyncio.run(run())

    socket = fake_socket.instances[0]
    assert socket.channels[0].unsubscribe_calls == 1
    assert socket.close_calls == 1


def test_failed_unsubscribe_still_closes_the_socket(fake_socket):
    fake_socket.fail_unsubscribe = True

    async def run():
        subscription = await _feed().subscribe("appointments_changes", "public", "appointments", lambda payload: None)
        with pytest.raises(SubscriptionError):
            await subscription.unsubscribe()
        await subscription.unsubscribe()

    asyncio.run(run())

    socket = fake_socket.instances[0]
    assert socket.channels[0].unsubscribe_calls == 1
    assert socket.close_calls == 1
