"""Expose constructed client wrappers."""

from .google_auth import ServiceAccountTokenClient
from .instance_id import InstanceIdClient

__all__ = [
    "InstanceIdClient",
    "ServiceAccountTokenClient",
]
