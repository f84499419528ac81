"""Public schema exports."""

from .admin_token import (
    AdminTokenDetails,
    AdminTokenResponse,
    AdminTokenStatus,
    ErrorResponse,
    ServiceAccountUploadResponse,
)
from .firebase import FirebaseWebConfig
from .notifications import FcmMessage, FcmNotification, NotificationPayload
from .topics import TopicMembershipRequest, TopicMembershipResponse

__all__ = [
    "AdminTokenDetails",
    "AdminTokenResponse",
    "AdminTokenStatus",
    "ErrorResponse",
    "FcmMessage",
    "FcmNotification",
    "FirebaseWebConfig",
    "NotificationPayload",
    "ServiceAccountUploadResponse",
    "TopicMembershipRequest",
    "TopicMembershipResponse",
]
