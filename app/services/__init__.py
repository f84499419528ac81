"""Service layer exports."""

from .credential_cipher import CredentialCipherService
from .credential_store import (
    CredentialStore,
    EncryptedFileCredentialStore,
    FileCredentialStore,
)
from .notifications import NotificationChannel, NotificationHub
from .token_issuer import TokenIssuer
from .token_lifecycle import AdminSessionStore, AdminTokenSession

__all__ = [
    "AdminSessionStore",
    "AdminTokenSession",
    "CredentialCipherService",
    "CredentialStore",
    "EncryptedFileCredentialStore",
    "FileCredentialStore",
    "NotificationChannel",
    "NotificationHub",
    "TokenIssuer",
]
