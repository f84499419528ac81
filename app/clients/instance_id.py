"""
Firebase Instance-ID client for FCM topic membership.

Thin wrapper over ``/iid/v1/{token}/rel/topics/{topic}``: ``POST`` adds the
device to the topic, ``DELETE`` removes it.
"""

from __future__ import annotations

import logging
import re
from typing import Tuple
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

_TOPIC_PREFIX = "/topics/"
_TOPIC_PATTERN = re.compile(r"^[a-zA-Z0-9\-_.~%]+$")


class MembershipError(Exception):
    """Base class for topic membership failures."""


class MembershipInputError(MembershipError):
    """Device token or topic name is missing or malformed."""


class MembershipProviderRejected(MembershipError):
    """The Instance-ID service answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Instance-ID service returned {status_code}: {body}")


class MembershipTransportError(MembershipError):
    """The Instance-ID service could not be reached."""


def normalize_membership_input(device_token: str, topic: str) -> Tuple[str, str]:
    """Trim and validate arguments; raises ``MembershipInputError`` before any I/O."""
    token = (device_token or "").strip()
    name = (topic or "").strip()
    if name.startswith(_TOPIC_PREFIX):
        name = name[len(_TOPIC_PREFIX):]
    if not token or not name:
        raise MembershipInputError("Token and topic are required")
    if not _TOPIC_PATTERN.match(name):
        raise MembershipInputError(
            f"Invalid topic name {name!r}; use letters, digits and -_.~%"
        )
    return token, name


class InstanceIdClient:
    """Subscribe and unsubscribe device registration tokens to FCM topics."""

    def __init__(
        self,
        *,
        server_key: str,
        base_url: str = "https://iid.googleapis.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._server_key = server_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def subscribe(self, device_token: str, topic: str) -> None:
        await self._send("POST", device_token, topic)

    async def unsubscribe(self, device_token: str, topic: str) -> None:
        await self._send("DELETE", device_token, topic)

    async def _send(self, method: str, device_token: str, topic: str) -> None:
        token, name = normalize_membership_input(device_token, topic)
        url = (
            f"{self._base_url}/iid/v1/{quote(token, safe='')}"
            f"/rel/topics/{quote(name, safe='')}"
        )
        headers = {
            "Authorization": f"key={self._server_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Instance-ID %s for topic %s failed: %s", method, name, exc)
            raise MembershipTransportError(str(exc) or type(exc).__name__) from exc

        if response.is_success:
            logger.info("Instance-ID %s for topic %s succeeded", method, name)
            return

        logger.warning(
            "Instance-ID %s for topic %s rejected with %s", method, name, response.status_code
        )
        raise MembershipProviderRejected(response.status_code, response.text)


__all__ = [
    "InstanceIdClient",
    "MembershipError",
    "MembershipInputError",
    "MembershipProviderRejected",
    "MembershipTransportError",
    "normalize_membership_input",
]
