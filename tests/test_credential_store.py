from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.models.credentials import REQUIRED_CREDENTIAL_FIELDS, ServiceAccountCredential
from app.services.credential_cipher import CredentialCipherService
from app.services.credential_store import (
    CredentialCorruptedError,
    CredentialNotFoundError,
    CredentialValidationError,
    EncryptedFileCredentialStore,
    FileCredentialStore,
    InvalidCredentialFormat,
    MissingCredentialFields,
    WrongCredentialType,
)


@pytest.fixture
def store(tmp_path: Path) -> FileCredentialStore:
    return FileCredentialStore(tmp_path / "service-account.json")


def test_put_then_get_returns_uploaded_key(store, service_account_info, service_account_bytes):
    assert not store.exists()

    stored = store.put(service_account_bytes)

    assert store.exists()
    assert store.get() == stored
    assert store.get() == ServiceAccountCredential.model_validate(service_account_info)


def test_put_persists_raw_bytes_verbatim(store, service_account_bytes):
    store.put(service_account_bytes)

    assert store.path.read_bytes() == service_account_bytes


def test_get_without_upload_raises_not_found(store):
    with pytest.raises(CredentialNotFoundError):
        store.get()


@pytest.mark.parametrize("field", REQUIRED_CREDENTIAL_FIELDS)
def test_missing_field_is_reported(store, service_account_info, field):
    del service_account_info[field]

    with pytest.raises(MissingCredentialFields) as excinfo:
        store.put(json.dumps(service_account_info).encode())

    assert field in excinfo.value.fields
    assert not store.exists()


def test_every_missing_field_is_reported_in_canonical_order(store, service_account_info):
    service_account_info.pop("token_uri")
    service_account_info["client_email"] = ""
    service_account_info.pop("project_id")

    with pytest.raises(MissingCredentialFields) as excinfo:
        store.put(json.dumps(service_account_info).encode())

    assert excinfo.value.fields == ["project_id", "client_email", "token_uri"]
    assert "project_id, client_email, token_uri" in excinfo.value.message


def test_wrong_type_is_rejected(store, service_account_info):
    service_account_info["type"] = "authorized_user"

    with pytest.raises(WrongCredentialType):
        store.put(json.dumps(service_account_info).encode())


@pytest.mark.parametrize("raw", [b"not json", b"\xff\xfe", b"[1, 2, 3]", b""])
def test_non_json_input_leaves_previous_key_untouched(store, service_account_bytes, raw):
    store.put(service_account_bytes)

    with pytest.raises(InvalidCredentialFormat):
        store.put(raw)

    assert store.path.read_bytes() == service_account_bytes
    assert store.get().project_id == "demo-project"


def test_non_string_field_is_rejected(store, service_account_info):
    service_account_info["client_id"] = 12345

    with pytest.raises(CredentialValidationError) as excinfo:
        store.put(json.dumps(service_account_info).encode())

    assert "client_id" in excinfo.value.message


def test_put_replaces_previous_key(store, service_account_info, service_account_bytes):
    store.put(service_account_bytes)
    service_account_info["project_id"] = "other-project"

    store.put(json.dumps(service_account_info).encode())

    assert store.get().project_id == "other-project"
    leftovers = [p for p in store.path.parent.iterdir() if p != store.path]
    assert leftovers == []


def test_hand_edited_file_is_reported_as_corrupted(store, service_account_bytes):
    store.put(service_account_bytes)
    store.path.write_text("{broken", encoding="utf-8")

    with pytest.raises(CredentialCorruptedError):
        store.get()


def test_clear_removes_key(store, service_account_bytes):
    store.put(service_account_bytes)

    store.clear()
    store.clear()

    assert not store.exists()


def test_encrypted_store_does_not_write_plaintext(tmp_path, service_account_bytes):
    cipher = CredentialCipherService(secret="at-rest-secret")
    store = EncryptedFileCredentialStore(tmp_path / "sa.json.enc", cipher)

    credential = store.put(service_account_bytes)

    on_disk = store.path.read_bytes()
    assert b"PRIVATE KEY" not in on_disk
    assert store.get() == credential


def test_encrypted_store_with_wrong_secret_cannot_read(tmp_path, service_account_bytes):
    path = tmp_path / "sa.json.enc"
    EncryptedFileCredentialStore(
        path, CredentialCipherService(secret="first")
    ).put(service_account_bytes)

    other = EncryptedFileCredentialStore(path, CredentialCipherService(secret="second"))

    assert other.exists()
    with pytest.raises(CredentialNotFoundError):
        other.get()


def test_encrypted_store_reads_and_rotates_file_from_previous_secret(
    tmp_path, service_account_bytes
):
    path = tmp_path / "sa.json.enc"
    EncryptedFileCredentialStore(
        path, CredentialCipherService(secret="old-secret")
    ).put(service_account_bytes)

    rotated = EncryptedFileCredentialStore(
        path, CredentialCipherService(secret="new-secret", previous=["old-secret"])
    )
    credential = rotated.get()

    assert credential.project_id == "demo-project"
    current_only = EncryptedFileCredentialStore(
        path, CredentialCipherService(secret="new-secret")
    )
    assert current_only.get() == credential
