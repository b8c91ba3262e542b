"""Admin session tokens kept in process memory."""
from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


@dataclass(frozen=True)
class AdminSession:
    username: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """Opaque bearer token -> username, with the expiry checked on lookup."""

    def __init__(self, ttl_seconds: int, clock: Callable[[], datetime] = _utcnow):
        self.ttl = timedelta(seconds=max(60, ttl_seconds))
        self._clock = clock
        self._sessions: dict[str, AdminSession] = {}
        self._lock = threading.Lock()

    def issue(self, username: str) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[token] = AdminSession(username, self._clock() + self.ttl)
        return token

    def lookup(self, token: str | None) -> Optional[str]:
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= self._clock():
                del self._sessions[token]
                return None
            return session.username

    def revoke(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def revoke_user(self, username: str, keep: str | None = None) -> None:
        with self._lock:
            for token in [t for t, s in self._sessions.items() if s.username == username and t != keep]:
                del self._sessions[token]
