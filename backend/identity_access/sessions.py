"""
Session resolution for incoming requests.

The resolver hides where sessions live. Store-backed resolvers (memory or
Postgres) look the opaque token up directly; provider-backed resolvers ask
the auth provider with the caller's headers. Callers get a `SessionRecord`
or None and own all error handling.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from .provider import AuthProviderClient
from .stores import SessionRecord

DEFAULT_COOKIE_NAME = "senseiiwyze.session_token"


class SessionBackend(Protocol):
    def get(self, token: str) -> Optional[SessionRecord]: ...

    def delete(self, token: str) -> None: ...


def token_from_cookie(value: str | None) -> str | None:
    """Strip a `token.signature` suffix from a signed cookie value."""
    if not value:
        return None
    token = value.split(".", 1)[0].strip()
    return token or None


def token_from_authorization(value: str | None) -> str | None:
    if not value:
        return None
    scheme, _, credentials = value.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def extract_session_token(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> str | None:
    """Return the session token from the cookie, else from a bearer header."""
    token = token_from_cookie(cookies.get(cookie_name))
    if token:
        return token
    auth = headers.get("authorization") or headers.get("Authorization")
    return token_from_authorization(auth)


class SessionResolver:
    """Resolve a request's session from a store or from the auth provider.

    Exactly one of `store` or `provider` must be given.
    """

    def __init__(
        self,
        *,
        store: SessionBackend | None = None,
        provider: AuthProviderClient | None = None,
        cookie_name: str = DEFAULT_COOKIE_NAME,
    ) -> None:
        if (store is None) == (provider is None):
            raise ValueError("SessionResolver needs exactly one of store or provider")
        self.store = store
        self.provider = provider
        self.cookie_name = cookie_name

    def resolve(self, headers: Mapping[str, str], cookies: Mapping[str, str]) -> Optional[SessionRecord]:
        if self.provider is not None:
            return self.provider.get_session(headers)
        token = extract_session_token(headers, cookies, self.cookie_name)
        if not token:
            return None
        return self.store.get(token)

    def end_session(self, headers: Mapping[str, str], cookies: Mapping[str, str]) -> None:
        """Revoke the request's session where it lives: store row or provider."""
        if self.provider is not None:
            self.provider.sign_out(headers)
            return
        token = extract_session_token(headers, cookies, self.cookie_name)
        if token:
            self.store.delete(token)


__all__ = [
    "DEFAULT_COOKIE_NAME",
    "SessionBackend",
    "SessionResolver",
    "extract_session_token",
    "token_from_authorization",
    "token_from_cookie",
]
