"""
Application configuration models and helpers.

Centralizes settings management so the API routes, the dependency factories
and the ``check_env`` tool share one configuration surface.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when required environment configuration is missing or invalid."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            "Missing or invalid configuration: " + ", ".join(missing)
        )


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class FirebaseWebSettings(_EnvSettings):
    """Public Firebase web SDK configuration handed to browser clients."""

    api_key: str = Field(..., validation_alias="FIREBASE_API_KEY")
    auth_domain: Optional[str] = Field(None, validation_alias="FIREBASE_AUTH_DOMAIN")
    project_id: str = Field(..., validation_alias="FIREBASE_PROJECT_ID")
    storage_bucket: Optional[str] = Field(
        None, validation_alias="FIREBASE_STORAGE_BUCKET"
    )
    messaging_sender_id: str = Field(
        ..., validation_alias="FIREBASE_MESSAGING_SENDER_ID"
    )
    app_id: str = Field(..., validation_alias="FIREBASE_APP_ID")
    measurement_id: Optional[str] = Field(
        None, validation_alias="FIREBASE_MEASUREMENT_ID"
    )
    vapid_key: Optional[str] = Field(
        None,
        validation_alias="FIREBASE_VAPID_KEY",
        description="Web push certificate key used when requesting device tokens.",
    )


class MessagingSettings(_EnvSettings):
    """Server-side settings for the Instance-ID topic membership API."""

    server_key: str = Field(..., validation_alias="FIREBASE_SERVER_KEY")
    instance_id_base_url: str = Field(
        "https://iid.googleapis.com", validation_alias="INSTANCE_ID_BASE_URL"
    )

    @field_validator("server_key")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("FIREBASE_SERVER_KEY must not be blank")
        return value


class CredentialSettings(_EnvSettings):
    """Where and how the uploaded service-account key is kept."""

    service_account_path: Path = Field(
        Path("service-account.json"), validation_alias="SERVICE_ACCOUNT_PATH"
    )
    encryption_secret: Optional[str] = Field(
        None,
        validation_alias="CREDENTIAL_ENCRYPTION_SECRET",
        description="When set, the stored key file is encrypted at rest.",
    )
    previous_encryption_secrets: str = Field(
        "",
        validation_alias="CREDENTIAL_ENCRYPTION_PREVIOUS_SECRETS",
        description="Comma-separated secrets still accepted for decryption after a rotation.",
    )
    max_upload_bytes: int = Field(
        5 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES"
    )


class AppSettings(_EnvSettings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    session_ttl_seconds: int = Field(86400, validation_alias="SESSION_TTL_SECONDS")
    firebase: FirebaseWebSettings
    messaging: MessagingSettings
    credentials: CredentialSettings = Field(default_factory=CredentialSettings)


def _error_names(exc: ValidationError) -> list[str]:
    names: list[str] = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc:
            names.append(str(loc[-1]).upper())
    return names


def load_settings(env_file: str | Path | None = None) -> AppSettings:
    """
    Build the settings tree.

    Every group is loaded before failing so the raised ``ConfigurationError``
    names all missing variables at once rather than the first one found.
    ``env_file`` replaces the default ``.env``; process environment variables
    still take precedence over it.
    """
    source = {"_env_file": env_file} if env_file is not None else {}
    groups: dict[str, object] = {}
    missing: list[str] = []
    for name, group in (
        ("firebase", FirebaseWebSettings),
        ("messaging", MessagingSettings),
        ("credentials", CredentialSettings),
    ):
        try:
            groups[name] = group(**source)  # type: ignore[call-arg]
        except ValidationError as exc:
            missing.extend(_error_names(exc))

    try:
        settings = (
            AppSettings(**groups, **source) if not missing else None  # type: ignore[arg-type]
        )
    except ValidationError as exc:
        missing.extend(_error_names(exc))
        settings = None

    if settings is None:
        raise ConfigurationError(missing)
    return settings


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return load_settings()


__all__ = [
    "AppSettings",
    "ConfigurationError",
    "CredentialSettings",
    "FirebaseWebSettings",
    "MessagingSettings",
    "get_settings",
    "load_settings",
]
