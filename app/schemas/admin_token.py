"""Schemas for the admin token and service-account endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint on failure."""

    error: str
    missing_fields: Optional[List[str]] = None


class ServiceAccountUploadResponse(BaseModel):
    success: bool = True
    message: str = "Service account uploaded successfully"
    project_id: str
    client_email: str


class AdminTokenResponse(BaseModel):
    """Token issued by ``POST /admin-token``."""

    access_token: str
    expires_in: int = Field(..., description="Lifetime in seconds at issuance.")
    token_type: Literal["Bearer"] = "Bearer"
    expires_at: datetime


class AdminTokenDetails(AdminTokenResponse):
    issued_at: datetime
    expired: bool
    remaining_seconds: int
    remaining_display: str


class AdminTokenStatus(BaseModel):
    """Snapshot of the caller's admin token session."""

    state: Literal["no_credential", "no_token", "valid", "expired"]
    has_credential: bool
    token: Optional[AdminTokenDetails] = None


__all__ = [
    "AdminTokenDetails",
    "AdminTokenResponse",
    "AdminTokenStatus",
    "ErrorResponse",
    "ServiceAccountUploadResponse",
]
