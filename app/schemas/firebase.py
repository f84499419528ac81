"""Public Firebase web configuration returned to browser clients."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FirebaseWebConfig(BaseModel):
    """Mirrors the object passed to ``initializeApp`` in the Firebase JS SDK."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(..., serialization_alias="apiKey")
    auth_domain: Optional[str] = Field(None, serialization_alias="authDomain")
    project_id: str = Field(..., serialization_alias="projectId")
    storage_bucket: Optional[str] = Field(None, serialization_alias="storageBucket")
    messaging_sender_id: str = Field(..., serialization_alias="messagingSenderId")
    app_id: str = Field(..., serialization_alias="appId")
    measurement_id: Optional[str] = Field(None, serialization_alias="measurementId")
    vapid_key: Optional[str] = Field(None, serialization_alias="vapidKey")


__all__ = ["FirebaseWebConfig"]
