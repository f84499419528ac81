"""
Mint Firebase Admin access tokens from the stored service-account key.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.clients.google_auth import (
    OAuthInvalidGrantError,
    OAuthTokenExchangeError,
    ServiceAccountTokenClient,
)
from app.models.credentials import IssuedAccessToken
from app.services.credential_store import CredentialNotFoundError, CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


class IssuanceError(Exception):
    """Base class for failures while minting an access token."""


class NoCredentialError(IssuanceError):
    """No usable service-account key is available."""


class InvalidGrantError(IssuanceError):
    """The token endpoint rejected the key as invalid or revoked."""


class TokenProviderError(IssuanceError):
    """Transport failure or unexpected response from the token endpoint."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Exchanges the stored key for a bearer token and computes its lifetime."""

    def __init__(
        self,
        store: CredentialStore,
        token_client: ServiceAccountTokenClient,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._client = token_client
        self._clock = clock

    async def issue(self) -> IssuedAccessToken:
        try:
            credential = self._store.get()
        except CredentialNotFoundError as exc:
            raise NoCredentialError(
                "Service account file not found. Please upload your adminsdk.json first."
            ) from exc

        try:
            provider_token = await self._client.fetch_token(credential)
        except OAuthInvalidGrantError as exc:
            logger.warning(
                "Token endpoint rejected key %s for %s",
                credential.private_key_id,
                credential.client_email,
            )
            raise InvalidGrantError(
                "Invalid service account credentials. Please check your adminsdk.json file."
            ) from exc
        except OAuthTokenExchangeError as exc:
            logger.error("Token exchange failed for %s: %s", credential.client_email, exc)
            raise TokenProviderError(str(exc) or "Failed to generate admin token") from exc

        if not provider_token.access_token:
            raise TokenProviderError("Failed to obtain access token")

        now = self._clock()
        if provider_token.expiry is None:
            expires_in = DEFAULT_EXPIRES_IN
        else:
            expires_in = math.floor((provider_token.expiry - now).total_seconds())
        if expires_in <= 0:
            raise TokenProviderError("Token endpoint returned an already expired token")

        token = IssuedAccessToken(
            access_token=provider_token.access_token,
            expires_in=expires_in,
            expires_at=now + timedelta(seconds=expires_in),
        )
        logger.info(
            "Issued admin access token for %s (expires in %ss)",
            credential.client_email,
            expires_in,
        )
        return token


__all__ = [
    "DEFAULT_EXPIRES_IN",
    "InvalidGrantError",
    "IssuanceError",
    "NoCredentialError",
    "TokenIssuer",
    "TokenProviderError",
    "utc_now",
]
