"""
Google OAuth utilities for service-account keys.

Mints short-lived bearer tokens for the Firebase Admin APIs using the
signed-JWT bearer grant (RFC 7523) against the key's ``token_uri``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence

import httpx
from fastapi import status
from google.auth import crypt, jwt

from app.models.credentials import ServiceAccountCredential

logger = logging.getLogger(__name__)

FIREBASE_ADMIN_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/firebase.messaging",
)

JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint cannot be reached or returns an error."""


class OAuthInvalidGrantError(OAuthTokenExchangeError):
    """Raised when the token endpoint rejects the key itself (``invalid_grant``)."""


@dataclass(frozen=True)
class ProviderToken:
    """Raw token material as reported by the token endpoint."""

    access_token: str
    expiry: Optional[datetime]


class ServiceAccountTokenClient:
    """Exchange a signed JWT assertion for an OAuth2 access token."""

    ASSERTION_LIFETIME_SECONDS = 3600

    def __init__(
        self,
        *,
        scopes: Sequence[str] = FIREBASE_ADMIN_SCOPES,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._scopes = tuple(scopes)
        self._timeout = timeout
        self._transport = transport

    def build_assertion(self, credential: ServiceAccountCredential) -> str:
        """Sign the grant assertion with the key's private key."""
        now = int(time.time())
        payload = {
            "iss": credential.client_email,
            "sub": credential.client_email,
            "aud": credential.token_uri,
            "scope": " ".join(self._scopes),
            "iat": now,
            "exp": now + self.ASSERTION_LIFETIME_SECONDS,
        }
        try:
            signer = crypt.RSASigner.from_string(
                credential.private_key, key_id=credential.private_key_id
            )
            # Non-RSA keys load but fail here.
            assertion = jwt.encode(signer, payload)
        except (ValueError, TypeError, IndexError) as exc:
            raise OAuthInvalidGrantError(
                "The private key in the service account file could not be used to sign."
            ) from exc
        return assertion.decode("utf-8") if isinstance(assertion, bytes) else assertion

    async def fetch_token(self, credential: ServiceAccountCredential) -> ProviderToken:
        """
        Exchange an assertion for a bearer token.

        Returns the access token together with the expiry instant the provider
        reported, or ``None`` when the response carried no ``expires_in``.
        """
        assertion = self.build_assertion(credential)
        data = {"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(credential.token_uri, data=data)
        except httpx.TimeoutException as exc:
            raise OAuthTokenExchangeError("Token endpoint timed out.") from exc
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        received_at = datetime.now(timezone.utc)

        if response.status_code != status.HTTP_200_OK:
            self._raise_for_error(response)

        try:
            token_payload: Dict[str, Any] = response.json()
        except json.JSONDecodeError as exc:
            raise OAuthTokenExchangeError("Token endpoint returned a non-JSON body.") from exc
        if not isinstance(token_payload, dict):
            raise OAuthTokenExchangeError("Token endpoint returned an unexpected body.")

        access_token = token_payload.get("access_token") or ""
        expires_in = token_payload.get("expires_in")
        expiry = None
        if expires_in is not None:
            try:
                expiry = received_at + timedelta(seconds=int(expires_in))
            except (TypeError, ValueError) as exc:
                raise OAuthTokenExchangeError(
                    f"Token endpoint returned an invalid expires_in: {expires_in!r}"
                ) from exc

        return ProviderToken(access_token=access_token, expiry=expiry)

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        body = response.text
        error_code = ""
        description = ""
        try:
            payload = response.json()
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            error_code = str(payload.get("error") or "")
            description = str(payload.get("error_description") or "")

        logger.warning(
            "Token endpoint returned %s (%s)", response.status_code, error_code or "no error code"
        )
        if error_code == "invalid_grant" or "invalid_grant" in body:
            raise OAuthInvalidGrantError(description or "invalid_grant")
        raise OAuthTokenExchangeError(
            f"Token endpoint returned {response.status_code}: {description or error_code or body}"
        )


__all__ = [
    "FIREBASE_ADMIN_SCOPES",
    "OAuthInvalidGrantError",
    "OAuthTokenExchangeError",
    "ProviderToken",
    "ServiceAccountTokenClient",
]
