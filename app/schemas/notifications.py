"""Schemas for foreground notification payloads."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

DEFAULT_TITLE = "New Notification"
DEFAULT_BODY = "You have a new message"


class NotificationPayload(BaseModel):
    """A notification as shown to the operator."""

    title: str
    body: str
    data: Optional[Dict[str, Any]] = None


class FcmNotification(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class FcmMessage(BaseModel):
    """Subset of an FCM message delivered to a foreground client."""

    notification: Optional[FcmNotification] = None
    data: Optional[Dict[str, Any]] = Field(
        None, description="Custom key/value pairs attached by the sender."
    )

    def to_payload(self) -> NotificationPayload:
        notification = self.notification or FcmNotification()
        return NotificationPayload(
            title=notification.title or DEFAULT_TITLE,
            body=notification.body or DEFAULT_BODY,
            data=self.data,
        )


__all__ = ["FcmMessage", "FcmNotification", "NotificationPayload"]
