"""Pytest configuration shared across the suite."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - tests/ is not a package
    import _bootstrap  # type: ignore # noqa: F401

import json

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture
def service_account_info(private_key_pem: str) -> dict:
    return {
        "type": "service_account",
        "project_id": "demo-project",
        "private_key_id": "key-123",
        "private_key": private_key_pem,
        "client_email": "firebase-adminsdk@demo-project.iam.gserviceaccount.com",
        "client_id": "10987654321",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
    }


@pytest.fixture
def service_account_bytes(service_account_info: dict) -> bytes:
    return json.dumps(service_account_info).encode("utf-8")
