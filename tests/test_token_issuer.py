from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.clients.google_auth import (
    OAuthInvalidGrantError,
    OAuthTokenExchangeError,
    ProviderToken,
)
from app.models.credentials import ServiceAccountCredential
from app.services.credential_store import CredentialNotFoundError
from app.services.token_issuer import (
    InvalidGrantError,
    NoCredentialError,
    TokenIssuer,
    TokenProviderError,
)

pytestmark = pytest.mark.anyio

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeStore:
    def __init__(self, credential: ServiceAccountCredential | None) -> None:
        self.credential = credential
        self.reads = 0

    def get(self) -> ServiceAccountCredential:
        self.reads += 1
        if self.credential is None:
            raise CredentialNotFoundError("nothing stored")
        return self.credential


class FakeTokenClient:
    def __init__(self, result: ProviderToken | Exception) -> None:
        self.result = result
        self.calls: list[ServiceAccountCredential] = []

    async def fetch_token(self, credential: ServiceAccountCredential) -> ProviderToken:
        self.calls.append(credential)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def credential(service_account_info) -> ServiceAccountCredential:
    return ServiceAccountCredential.model_validate(service_account_info)


def _issuer(credential, result) -> tuple[TokenIssuer, FakeTokenClient]:
    client = FakeTokenClient(result)
    return TokenIssuer(FakeStore(credential), client, clock=lambda: NOW), client


async def test_issue_floors_lifetime_from_provider_expiry(credential):
    expiry = NOW + timedelta(seconds=3599, milliseconds=700)
    issuer, client = _issuer(credential, ProviderToken("ya29.abc", expiry))

    token = await issuer.issue()

    assert token.access_token == "ya29.abc"
    assert token.token_type == "Bearer"
    assert token.expires_in == 3599
    assert token.expires_at == NOW + timedelta(seconds=3599)
    assert token.issued_at == NOW
    assert client.calls == [credential]


async def test_missing_expiry_defaults_to_one_hour(credential):
    issuer, _ = _issuer(credential, ProviderToken("ya29.abc", None))

    token = await issuer.issue()

    assert token.expires_in == 3600
    assert token.expires_at == NOW + timedelta(seconds=3600)


async def test_missing_access_token_is_provider_error(credential):
    issuer, _ = _issuer(credential, ProviderToken("", NOW + timedelta(hours=1)))

    with pytest.raises(TokenProviderError):
        await issuer.issue()


async def test_already_expired_token_is_provider_error(credential):
    issuer, _ = _issuer(credential, ProviderToken("ya29.abc", NOW - timedelta(seconds=5)))

    with pytest.raises(TokenProviderError):
        await issuer.issue()


async def test_no_stored_key_fails_without_network(credential):
    issuer, client = _issuer(None, ProviderToken("unused", None))

    with pytest.raises(NoCredentialError):
        await issuer.issue()

    assert client.calls == []


async def test_invalid_grant_maps_to_credential_problem(credential):
    issuer, _ = _issuer(credential, OAuthInvalidGrantError("invalid_grant"))

    with pytest.raises(InvalidGrantError, match="Invalid service account credentials"):
        await issuer.issue()


async def test_other_exchange_failures_map_to_provider_error(credential):
    issuer, _ = _issuer(credential, OAuthTokenExchangeError("Token endpoint timed out."))

    with pytest.raises(TokenProviderError, match="timed out"):
        await issuer.issue()
