from __future__ import annotations

import pytest

from app.schemas.notifications import FcmMessage, NotificationPayload
from app.services.notifications import NotificationChannel, NotificationHub

pytestmark = pytest.mark.anyio


def _payload(title: str) -> NotificationPayload:
    return NotificationPayload(title=title, body="body")


def test_fcm_message_defaults():
    payload = FcmMessage.model_validate({"data": {"orderId": "42"}}).to_payload()

    assert payload.title == "New Notification"
    assert payload.body == "You have a new message"
    assert payload.data == {"orderId": "42"}


def test_fcm_message_keeps_sender_fields():
    payload = FcmMessage.model_validate(
        {"notification": {"title": "Hello", "body": "World"}}
    ).to_payload()

    assert (payload.title, payload.body, payload.data) == ("Hello", "World", None)


async def test_channel_delivers_in_order_and_ends_after_close():
    channel = NotificationChannel()
    channel.publish(_payload("a"))
    channel.publish(_payload("b"))
    channel.close()

    received = [payload.title async for payload in channel]

    assert received == ["a", "b"]
    assert channel.publish(_payload("c")) is False


async def test_full_channel_drops_oldest():
    channel = NotificationChannel(maxsize=2)
    for title in ("a", "b", "c"):
        channel.publish(_payload(title))
    channel.close()

    assert [payload.title async for payload in channel] == ["b", "c"]


async def test_hub_replaces_previous_consumer():
    hub = NotificationHub()
    first = hub.subscribe("device")
    second = hub.subscribe("device")

    assert first.closed
    assert hub.publish("device", _payload("hi"))
    assert (await second.receive()).title == "hi"
    assert await first.receive() is None


async def test_hub_unsubscribe_ignores_stale_channel():
    hub = NotificationHub()
    stale = hub.subscribe("device")
    current = hub.subscribe("device")

    hub.unsubscribe("device", stale)
    assert hub.publish("device", _payload("still here"))

    hub.unsubscribe("device", current)
    assert current.closed
    assert hub.publish("device", _payload("gone")) is False
