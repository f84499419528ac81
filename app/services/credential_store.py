"""
Single-slot storage for the uploaded service-account key.

Only one key is kept at a time; every successful ``put`` replaces the
previous one. Writes go through a temporary file and ``os.replace`` so a
reader never observes a half-written key.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from app.models.credentials import REQUIRED_CREDENTIAL_FIELDS, ServiceAccountCredential
from app.services.credential_cipher import CredentialCipherService

logger = logging.getLogger(__name__)


class CredentialValidationError(Exception):
    """Raised when an uploaded key file is rejected."""

    message = "Invalid service account file."

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
        super().__init__(self.message)


class InvalidCredentialFormat(CredentialValidationError):
    message = "Invalid JSON file"


class MissingCredentialFields(CredentialValidationError):
    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(
            f"Invalid service account file. Missing fields: {', '.join(fields)}"
        )


class WrongCredentialType(CredentialValidationError):
    message = "File is not a valid Firebase service account key"


class CredentialNotFoundError(Exception):
    """Raised when no service-account key has been stored yet."""


class CredentialCorruptedError(CredentialNotFoundError):
    """Raised when the stored key can no longer be read back as a valid key."""


def parse_service_account(raw: bytes) -> ServiceAccountCredential:
    """Validate raw key-file bytes, reporting every missing field at once."""
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise InvalidCredentialFormat() from exc
    if not isinstance(payload, dict):
        raise InvalidCredentialFormat()

    missing = [field for field in REQUIRED_CREDENTIAL_FIELDS if not payload.get(field)]
    if missing:
        raise MissingCredentialFields(missing)

    if payload["type"] != "service_account":
        raise WrongCredentialType()

    try:
        return ServiceAccountCredential.model_validate(payload)
    except ValidationError as exc:
        # Present but non-string values, e.g. ``"client_id": 123``.
        bad = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise CredentialValidationError(
            f"Invalid service account file. Malformed fields: {', '.join(bad)}"
        ) from exc


def _atomic_write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class CredentialStore(ABC):
    """Interface for the single-slot service-account key store."""

    @abstractmethod
    def exists(self) -> bool:
        """Return whether a key is currently stored."""

    @abstractmethod
    def put(self, raw: bytes) -> ServiceAccountCredential:
        """Validate and store raw key-file bytes, replacing any previous key."""

    @abstractmethod
    def get(self) -> ServiceAccountCredential:
        """Return the stored key or raise ``CredentialNotFoundError``."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored key, if any."""


class FileCredentialStore(CredentialStore):
    """Keeps the key file verbatim at a fixed path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def put(self, raw: bytes) -> ServiceAccountCredential:
        credential = parse_service_account(raw)
        _atomic_write(self._path, self._encode(raw))
        logger.info(
            "Stored service account key for project %s (%s)",
            credential.project_id,
            credential.client_email,
        )
        return credential

    def get(self) -> ServiceAccountCredential:
        try:
            stored = self._path.read_bytes()
        except FileNotFoundError as exc:
            raise CredentialNotFoundError(
                f"No service account stored at {self._path}"
            ) from exc

        try:
            return parse_service_account(self._decode(stored))
        except (CredentialValidationError, ValueError) as exc:
            logger.warning("Stored service account at %s is unreadable: %s", self._path, exc)
            raise CredentialCorruptedError(str(exc)) from exc

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)

    def _encode(self, raw: bytes) -> bytes:
        return raw

    def _decode(self, stored: bytes) -> bytes:
        return stored


class EncryptedFileCredentialStore(FileCredentialStore):
    """Same slot semantics as ``FileCredentialStore`` but Fernet-encrypted at rest."""

    def __init__(self, path: str | Path, cipher: CredentialCipherService) -> None:
        super().__init__(path)
        self._cipher = cipher

    def _encode(self, raw: bytes) -> bytes:
        return self._cipher.encrypt(raw)

    def _decode(self, stored: bytes) -> bytes:
        raw = self._cipher.decrypt(stored)
        if not self._cipher.is_current(stored):
            _atomic_write(self._path, self._cipher.rotate(stored))
            logger.info("Re-encrypted %s with the current secret", self._path)
        return raw


__all__ = [
    "CredentialCorruptedError",
    "CredentialNotFoundError",
    "CredentialStore",
    "CredentialValidationError",
    "EncryptedFileCredentialStore",
    "FileCredentialStore",
    "InvalidCredentialFormat",
    "MissingCredentialFields",
    "WrongCredentialType",
    "parse_service_account",
]
