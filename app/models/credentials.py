"""
Domain models for the stored service-account key and the tokens minted from it.
"""

from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

REQUIRED_CREDENTIAL_FIELDS: tuple[str, ...] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "client_id",
    "auth_uri",
    "token_uri",
)


class ServiceAccountCredential(BaseModel):
    """A Firebase / Google Cloud service-account key file."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: Literal["service_account"]
    project_id: str = Field(..., min_length=1)
    private_key_id: str = Field(..., min_length=1)
    private_key: str = Field(..., min_length=1, repr=False)
    client_email: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    auth_uri: str = Field(..., min_length=1)
    token_uri: str = Field(..., min_length=1)


class IssuedAccessToken(BaseModel):
    """An OAuth2 bearer token minted from a service-account key."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1, repr=False)
    token_type: Literal["Bearer"] = "Bearer"
    expires_in: int = Field(..., gt=0, description="Lifetime in seconds at issuance.")
    expires_at: datetime = Field(..., description="Absolute expiry instant (UTC).")

    @property
    def issued_at(self) -> datetime:
        return self.expires_at - timedelta(seconds=self.expires_in)


__all__ = [
    "IssuedAccessToken",
    "REQUIRED_CREDENTIAL_FIELDS",
    "ServiceAccountCredential",
]
