from __future__ import annotations

import pytest

from app.core.config import ConfigurationError, load_settings


def test_settings_load_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIREBASE_SERVER_KEY", "another-key")
    monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "3.5")

    settings = load_settings()

    assert settings.messaging.server_key == "another-key"
    assert settings.http_timeout_seconds == 3.5
    assert settings.credentials.max_upload_bytes == 5 * 1024 * 1024


def test_missing_configuration_names_every_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)
    monkeypatch.delenv("FIREBASE_SERVER_KEY", raising=False)

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert "FIREBASE_PROJECT_ID" in excinfo.value.missing
    assert "FIREBASE_SERVER_KEY" in excinfo.value.missing


def test_blank_server_key_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIREBASE_SERVER_KEY", "   ")

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert excinfo.value.missing == ["FIREBASE_SERVER_KEY"]


@pytest.mark.anyio("asyncio")
async def test_firebase_config_endpoint_returns_web_sdk_keys() -> None:
    import httpx

    from app.main import app

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/firebase-config")

    assert response.status_code == 200
    body = response.json()
    assert body["apiKey"] == "test-api-key"
    assert body["projectId"] == "demo-project"
    assert body["messagingSenderId"] == "1234567890"
    assert body["vapidKey"] == "test-vapid-key"
    assert "storageBucket" not in body


def test_env_file_supplies_values_the_environment_lacks(
    tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "console.env"
    env_file.write_text(
        'FIREBASE_PROJECT_ID="from-file"\nFIREBASE_SERVER_KEY=file-key\n',
        encoding="utf-8",
    )
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)
    monkeypatch.setenv("FIREBASE_SERVER_KEY", "process-key")

    settings = load_settings(env_file)

    assert settings.firebase.project_id == "from-file"
    assert settings.messaging.server_key == "process-key"
