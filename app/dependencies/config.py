"""
FastAPI dependency utilities for injecting configuration.
"""

from app.core.config import AppSettings, get_settings
from app.schemas import FirebaseWebConfig


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return get_settings()


def get_firebase_web_config() -> FirebaseWebConfig:
    """Public web SDK configuration derived from settings."""
    firebase = get_settings().firebase
    return FirebaseWebConfig(**firebase.model_dump())


__all__ = ["get_app_settings", "get_firebase_web_config"]
