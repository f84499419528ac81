"""
Expiry tracking for minted admin tokens.

The module-level functions are pure views over an ``IssuedAccessToken``; the
``AdminTokenSession`` object owns the mutable state for one operator session
(whether a key has been uploaded, and the most recently minted token).
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from app.models.credentials import IssuedAccessToken
from app.services.token_issuer import NoCredentialError, TokenIssuer

logger = logging.getLogger(__name__)

_ZERO = timedelta(0)


class TokenState(str, enum.Enum):
    NO_CREDENTIAL = "no_credential"
    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED = "expired"


def is_expired(token: Optional[IssuedAccessToken], now: datetime) -> bool:
    """A missing token is never expired; it is a separate state."""
    if token is None:
        return False
    return now >= token.expires_at


def remaining(token: Optional[IssuedAccessToken], now: datetime) -> timedelta:
    if token is None:
        return _ZERO
    return max(_ZERO, token.expires_at - now)


def display_remaining(token: Optional[IssuedAccessToken], now: datetime) -> str:
    """Render the time left as ``"1h 5m remaining"``, ``"7m remaining"`` or ``"Expired"``."""
    if token is None:
        return ""
    left = remaining(token, now)
    if left <= _ZERO:
        return "Expired"
    minutes = int(left.total_seconds() // 60)
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m remaining"
    return f"{minutes}m remaining"


@dataclass
class AdminTokenSession:
    """State for one operator working with the admin token console."""

    session_id: str
    has_credential: bool = False
    token: Optional[IssuedAccessToken] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _refresh_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def state(self, now: datetime) -> TokenState:
        if not self.has_credential:
            return TokenState.NO_CREDENTIAL
        if self.token is None:
            return TokenState.NO_TOKEN
        if is_expired(self.token, now):
            return TokenState.EXPIRED
        return TokenState.VALID

    def mark_credential_uploaded(self) -> None:
        # A new key may belong to another identity; the old token is dropped.
        self.has_credential = True
        self.token = None
        self.touch()

    async def refresh(self, issuer: TokenIssuer) -> IssuedAccessToken:
        """
        Mint a new token and replace the tracked one.

        On failure the previously tracked token is kept and the error is
        re-raised. Refreshes for the same session run one at a time.
        """
        async with self._refresh_lock:
            if not self.has_credential:
                raise NoCredentialError(
                    "No service account uploaded for this session. Please upload your adminsdk.json first."
                )
            token = await issuer.issue()
            self.token = token
            self.touch()
            return token

    def reset(self) -> None:
        """Forget the token and the uploaded-key flag. The key file itself is untouched."""
        self.has_credential = False
        self.token = None
        self.touch()

    def status(self, now: datetime) -> Dict[str, Any]:
        token = self.token
        snapshot: Dict[str, Any] = {
            "state": self.state(now).value,
            "has_credential": self.has_credential,
            "token": None,
        }
        if token is not None:
            snapshot["token"] = {
                "access_token": token.access_token,
                "token_type": token.token_type,
                "expires_in": token.expires_in,
                "expires_at": token.expires_at,
                "issued_at": token.issued_at,
                "expired": is_expired(token, now),
                "remaining_seconds": int(remaining(token, now).total_seconds()),
                "remaining_display": display_remaining(token, now),
            }
        return snapshot

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


class AdminSessionStore:
    """Process-local registry of operator sessions with TTL pruning."""

    def __init__(
        self,
        *,
        ttl_seconds: int = 86400,
        credential_present: Callable[[], bool] = lambda: False,
    ) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._credential_present = credential_present
        self._sessions: Dict[str, AdminTokenSession] = {}
        self._lock = RLock()

    def _prune(self) -> None:
        threshold = datetime.now(timezone.utc) - self._ttl
        expired = [sid for sid, s in self._sessions.items() if s.updated_at < threshold]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Pruned %d idle admin sessions", len(expired))

    def create(self) -> AdminTokenSession:
        with self._lock:
            self._prune()
            session = AdminTokenSession(
                session_id=uuid4().hex,
                has_credential=self._credential_present(),
            )
            self._sessions[session.session_id] = session
            return session

    def get(self, session_id: str) -> Optional[AdminTokenSession]:
        with self._lock:
            self._prune()
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str]) -> AdminTokenSession:
        with self._lock:
            session = self.get(session_id) if session_id else None
            return session or self.create()

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)


__all__ = [
    "AdminSessionStore",
    "AdminTokenSession",
    "TokenState",
    "display_remaining",
    "is_expired",
    "remaining",
]
