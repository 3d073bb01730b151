"""
Minimal client for the hosted auth provider's session endpoint.

Why: The auth provider owns users and sessions. The edge middleware only
needs one question answered per request: "who is this, and which role do
they hold?". This client forwards the caller's credentials (cookie and
bearer header, nothing else) to the provider's `get-session` endpoint and
maps the JSON answer to a `SessionRecord`. Sign-out is forwarded the same
way so the provider revokes the session it issued.

Security: Never log the forwarded headers. Only `Cookie` and `Authorization`
leave the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from datetime import datetime

# Small indirection to ease monkeypatching in tests
import requests as http

from .stores import SessionRecord

FORWARDED_HEADERS = ("cookie", "authorization")


class AuthProviderError(Exception):
    """The provider answered with an unexpected status or payload."""

    def __init__(self, code: str, status_code: int | None = None):
        super().__init__(code)
        self.code = code
        self.status_code = status_code


def http_get(url: str, headers: dict[str, str], timeout: float):
    return http.get(url, headers=headers, timeout=timeout)


def http_post(url: str, headers: dict[str, str], timeout: float):
    return http.post(url, headers=headers, timeout=timeout)


@dataclass(frozen=True)
class AuthProviderConfig:
    base_url: str  # e.g., https://auth.senseiiwyze.com
    session_path: str = "/api/auth/get-session"
    sign_in_path: str = "/api/auth/sign-in/email"
    sign_up_path: str = "/api/auth/sign-up/email"
    sign_out_path: str = "/api/auth/sign-out"
    timeout_seconds: float = 5.0

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    @property
    def session_endpoint(self) -> str:
        return self.url(self.session_path)

    @property
    def sign_in_endpoint(self) -> str:
        return self.url(self.sign_in_path)

    @property
    def sign_up_endpoint(self) -> str:
        return self.url(self.sign_up_path)

    @property
    def sign_out_endpoint(self) -> str:
        return self.url(self.sign_out_path)


def _parse_expiry(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp())
    except ValueError:
        return None


def session_from_payload(payload: Any) -> Optional[SessionRecord]:
    """Map a `{session, user}` payload to a SessionRecord; None if absent."""
    if not isinstance(payload, Mapping):
        return None
    user = payload.get("user")
    if not isinstance(user, Mapping) or not user.get("id"):
        return None
    session = payload.get("session")
    if not isinstance(session, Mapping):
        session = {}
    role = user.get("role")
    return SessionRecord(
        token=str(session.get("token") or ""),
        user_id=str(user["id"]),
        email=str(user.get("email") or ""),
        name=str(user.get("name") or ""),
        role=str(role) if role is not None else None,
        expires_at=_parse_expiry(session.get("expiresAt")),
        active_organization_id=session.get("activeOrganizationId"),
    )


def _forwarded(headers: Mapping[str, str]) -> dict[str, str]:
    forward = {}
    for key, value in headers.items():
        if key.lower() in FORWARDED_HEADERS and value:
            forward[key.lower()] = value
    return forward


class AuthProviderClient:
    def __init__(self, config: AuthProviderConfig):
        self.cfg = config

    def get_session(self, headers: Mapping[str, str]) -> Optional[SessionRecord]:
        """Resolve the caller's session at the provider.

        Returns None when the caller carries no credentials or the provider
        reports no session (200 `null` or 401). Raises AuthProviderError for
        any other status or a non-JSON body.
        """
        forward = _forwarded(headers)
        if not forward:
            return None
        forward["accept"] = "application/json"
        resp = http_get(self.cfg.session_endpoint, headers=forward, timeout=self.cfg.timeout_seconds)
        if resp.status_code == 401:
            return None
        if resp.status_code != 200:
            raise AuthProviderError("unexpected_status", status_code=resp.status_code)
        try:
            body = resp.json()
        except ValueError as exc:
            raise AuthProviderError("invalid_payload", status_code=resp.status_code) from exc
        return session_from_payload(body)

    def sign_out(self, headers: Mapping[str, str]) -> bool:
        """Revoke the caller's session at the provider.

        Returns False when there was nothing to revoke (no credentials, or
        401 from the provider) and True once the provider confirms. Raises
        AuthProviderError for any other status.
        """
        forward = _forwarded(headers)
        if not forward:
            return False
        forward["accept"] = "application/json"
        resp = http_post(self.cfg.sign_out_endpoint, headers=forward, timeout=self.cfg.timeout_seconds)
        if resp.status_code == 401:
            return False
        if not 200 <= resp.status_code < 300:
            raise AuthProviderError("unexpected_status", status_code=resp.status_code)
        return True


__all__ = [
    "AuthProviderClient",
    "AuthProviderConfig",
    "AuthProviderError",
    "session_from_payload",
]
