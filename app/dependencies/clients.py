"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

import logging
from functools import lru_cache

from app.clients import InstanceIdClient, ServiceAccountTokenClient
from app.core.config import get_settings
from app.services import (
    AdminSessionStore,
    CredentialCipherService,
    CredentialStore,
    EncryptedFileCredentialStore,
    FileCredentialStore,
    NotificationHub,
    TokenIssuer,
)

logger = logging.getLogger(__name__)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_credential_store() -> CredentialStore:
    """Provide the single-slot key store, encrypted when a secret is configured."""
    settings = _settings().credentials
    if settings.encryption_secret:
        previous = [s.strip() for s in settings.previous_encryption_secrets.split(",")]
        cipher = CredentialCipherService(
            secret=settings.encryption_secret, previous=previous
        )
        return EncryptedFileCredentialStore(settings.service_account_path, cipher)
    logger.warning(
        "CREDENTIAL_ENCRYPTION_SECRET is not set; the service account key at %s "
        "is stored in plaintext.",
        settings.service_account_path,
    )
    return FileCredentialStore(settings.service_account_path)


@lru_cache()
def get_token_client() -> ServiceAccountTokenClient:
    """Provide the JWT bearer grant client."""
    return ServiceAccountTokenClient(timeout=_settings().http_timeout_seconds)


def get_token_issuer() -> TokenIssuer:
    """Build a token issuer over the configured store and client."""
    return TokenIssuer(store=get_credential_store(), token_client=get_token_client())


@lru_cache()
def get_admin_session_store() -> AdminSessionStore:
    """Provide the process-local operator session registry."""
    settings = _settings()
    return AdminSessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        credential_present=lambda: get_credential_store().exists(),
    )


@lru_cache()
def get_instance_id_client() -> InstanceIdClient:
    """Provide the Instance-ID topic membership client."""
    settings = _settings()
    return InstanceIdClient(
        server_key=settings.messaging.server_key,
        base_url=settings.messaging.instance_id_base_url,
        timeout=settings.http_timeout_seconds,
    )


@lru_cache()
def get_notification_hub() -> NotificationHub:
    """Provide the process-wide notification hub."""
    return NotificationHub()


__all__ = [
    "get_admin_session_store",
    "get_credential_store",
    "get_instance_id_client",
    "get_notification_hub",
    "get_token_client",
    "get_token_issuer",
]
