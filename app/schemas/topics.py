"""Schemas for FCM topic membership requests."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TopicMembershipRequest(BaseModel):
    """Device registration token and topic to (un)subscribe."""

    token: str = Field("", description="FCM device registration token.")
    topic: str = Field("", description="Topic name, with or without /topics/ prefix.")


class TopicMembershipResponse(BaseModel):
    success: bool
    message: Optional[str] = None


__all__ = ["TopicMembershipRequest", "TopicMembershipResponse"]
