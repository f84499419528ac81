"""At-rest encryption for the stored service-account key file.

The Fernet key is the urlsafe-base64 SHA-256 digest of the operator's secret,
so any passphrase length works. Secrets listed as ``previous`` can still
decrypt a file written before a rotation; new writes always use the current
secret.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Sequence

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _fernet_for(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class CredentialCipherService:
    def __init__(self, *, secret: str, previous: Sequence[str] = ()) -> None:
        if not secret:
            raise ValueError("CREDENTIAL_ENCRYPTION_SECRET is empty.")
        self._current = _fernet_for(secret)
        self._all = MultiFernet(
            [self._current] + [_fernet_for(old) for old in previous if old]
        )

    def encrypt(self, key_file: bytes) -> bytes:
        return self._current.encrypt(key_file)

    def decrypt(self, stored: bytes) -> bytes:
        """Return the key-file bytes; ``ValueError`` if no known secret opens them."""
        try:
            return self._all.decrypt(stored)
        except InvalidToken as exc:
            raise ValueError(
                "Stored service account cannot be decrypted with the configured secrets."
            ) from exc

    def is_current(self, stored: bytes) -> bool:
        """Whether ``stored`` was written under the current secret."""
        try:
            self._current.decrypt(stored)
        except InvalidToken:
            return False
        return True

    def rotate(self, stored: bytes) -> bytes:
        """Re-encrypt a file written under a previous secret with the current one."""
        try:
            return self._all.rotate(stored)
        except InvalidToken as exc:
            raise ValueError(
                "Stored service account cannot be decrypted with the configured secrets."
            ) from exc


__all__ = ["CredentialCipherService"]
