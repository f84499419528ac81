"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_admin_session_store,
    get_credential_store,
    get_instance_id_client,
    get_notification_hub,
    get_token_client,
    get_token_issuer,
)
from .config import get_app_settings, get_firebase_web_config

__all__ = [
    "get_admin_session_store",
    "get_app_settings",
    "get_credential_store",
    "get_firebase_web_config",
    "get_instance_id_client",
    "get_notification_hub",
    "get_token_client",
    "get_token_issuer",
]
