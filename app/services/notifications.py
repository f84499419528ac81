"""Single-consumer delivery of foreground notifications per device token."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, Optional

from app.schemas.notifications import NotificationPayload

logger = logging.getLogger(__name__)


class NotificationChannel:
    """
    Bounded stream of payloads for exactly one consumer.

    When the buffer is full the oldest payload is dropped. After ``close`` the
    iterator drains what is buffered and then stops.
    """

    def __init__(self, maxsize: int = 32) -> None:
        self._queue: asyncio.Queue[Optional[NotificationPayload]] = asyncio.Queue(
            maxsize=maxsize + 1
        )
        self._maxsize = maxsize
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, payload: NotificationPayload) -> bool:
        if self._closed:
            return False
        if self._queue.qsize() >= self._maxsize:
            dropped = self._queue.get_nowait()
            logger.debug("Notification buffer full; dropped %r", dropped)
        self._queue.put_nowait(payload)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Sentinel wakes a consumer blocked in ``receive``; the extra slot keeps room for it.
        self._queue.put_nowait(None)

    async def receive(self) -> Optional[NotificationPayload]:
        """Wait for the next payload; ``None`` once the channel is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        payload = await self._queue.get()
        if payload is None:
            self._closed = True
        return payload

    def __aiter__(self) -> AsyncIterator[NotificationPayload]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[NotificationPayload]:
        while True:
            payload = await self.receive()
            if payload is None:
                return
            yield payload


class NotificationHub:
    """Keeps at most one open channel per device token."""

    def __init__(self, buffer_size: int = 32) -> None:
        self._buffer_size = buffer_size
        self._channels: Dict[str, NotificationChannel] = {}

    def subscribe(self, device_token: str) -> NotificationChannel:
        previous = self._channels.get(device_token)
        if previous is not None:
            logger.info("Replacing existing notification consumer")
            previous.close()
        channel = NotificationChannel(self._buffer_size)
        self._channels[device_token] = channel
        return channel

    def unsubscribe(self, device_token: str, channel: NotificationChannel | None = None) -> None:
        current = self._channels.get(device_token)
        if current is None or (channel is not None and current is not channel):
            return
        current.close()
        del self._channels[device_token]

    def publish(self, device_token: str, payload: NotificationPayload) -> bool:
        channel = self._channels.get(device_token)
        if channel is None:
            return False
        return channel.publish(payload)


__all__ = ["NotificationChannel", "NotificationHub"]
