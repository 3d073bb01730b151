"""
In-memory session store for development and tests.

Why: Keep sessions opaque to the client. The cookie carries only a random
token; user id, role claim and organization stay server-side. For production,
use the Postgres-backed store (`stores_db.DBSessionStore`) or resolve sessions
through the auth provider (`provider.AuthProviderClient`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    token: str
    user_id: str
    email: str
    name: str
    role: Optional[str]
    expires_at: Optional[int] = None
    active_organization_id: Optional[str] = None
    ttl_seconds: int = 3600


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(
        self,
        *,
        user_id: str,
        email: str,
        name: str,
        role: Optional[str],
        ttl_seconds: int = 3600,
        active_organization_id: Optional[str] = None,
    ) -> SessionRecord:
        token = secrets.token_urlsafe(24)
        rec = SessionRecord(
            token=token,
            user_id=user_id,
            email=email,
            name=name,
            role=role,
            expires_at=_now() + ttl_seconds,
            active_organization_id=active_organization_id,
            ttl_seconds=ttl_seconds,
        )
        self._data[token] = rec
        return rec

    def get(self, token: str) -> Optional[SessionRecord]:
        rec = self._data.get(token)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(token, None)
            return None
        return rec

    def delete(self, token: str) -> None:
        self._data.pop(token, None)
