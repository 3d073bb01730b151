"""
Route classification and role-based access decisions.

Why:
    The edge middleware must decide, once per request, whether to pass the
    request through or redirect it. Keeping the decision a pure function of
    (path, role claim, session presence) lets us test every rule without an
    ASGI stack and keeps framework code in the web adapter.

Rules (evaluated in order):
    1. Static assets and API paths are never checked here; API handlers
       authorize themselves.
    2. Auth pages (/login, /signup) send authenticated callers to their
       default dashboard.
    3. Public paths are allowed with or without a session.
    4. Without a session, everything else redirects to
       `/login?callbackUrl=<path>`.
    5. `/dashboard` is a hub and redirects to the default dashboard.
    6. Otherwise the path must start with a prefix granted by any role token;
       if not, redirect to the primary role's default dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

from .domain import (
    ME_ROUTE,
    ORG_ROUTE,
    TEAM_ROUTE,
    allowed_prefixes,
    default_route_for_role,
)

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
DASHBOARD_HUB_PATH = "/dashboard"

AUTH_PAGES = frozenset({LOGIN_PATH, SIGNUP_PATH})

PUBLIC_ROUTES: tuple[str, ...] = (
    "/",
    LOGIN_PATH,
    SIGNUP_PATH,
    "/auth",
    "/api/auth",
    "/forgot-password",
    "/reset-password",
    "/verify-email",
    "/unauthorized",
    "/health",
)

API_PREFIX = "/api"
STATIC_PREFIXES: tuple[str, ...] = ("/static/", "/_next/")
STATIC_FILES = frozenset({"/favicon.ico", "/robots.txt"})
SCOPED_PREFIXES: tuple[str, ...] = (ME_ROUTE, TEAM_ROUTE, ORG_ROUTE)


class RouteKind(str, Enum):
    STATIC = "static"
    API = "api"
    AUTH_PAGE = "auth_page"
    PUBLIC = "public"
    DASHBOARD_HUB = "dashboard_hub"
    SCOPED = "scoped"
    PROTECTED = "protected"


class Outcome(str, Enum):
    ALLOW = "allow"
    LOGIN = "login"
    DASHBOARD = "dashboard"


@dataclass(frozen=True)
class AccessDecision:
    outcome: Outcome
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(Outcome.ALLOW)

    @classmethod
    def to_login(cls, path: str) -> "AccessDecision":
        return cls(Outcome.LOGIN, login_url(path))

    @classmethod
    def to_dashboard(cls, role: Optional[str]) -> "AccessDecision":
        return cls(Outcome.DASHBOARD, default_route_for_role(role))


def login_url(callback_path: str | None = None) -> str:
    """Build the login redirect, carrying the original path as callbackUrl.

    Slashes stay readable (`/login?callbackUrl=/team/tasks`); everything else
    that could break the query string is percent-encoded.
    """
    if not callback_path:
        return LOGIN_PATH
    return f"{LOGIN_PATH}?callbackUrl={quote(callback_path, safe='/')}"


def is_public_path(path: str) -> bool:
    """Exact match or sub-path of a public entry; "/" only matches itself."""
    for route in PUBLIC_ROUTES:
        if path == route:
            return True
        if route != "/" and path.startswith(route + "/"):
            return True
    return False


def is_api_path(path: str) -> bool:
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def is_static_path(path: str) -> bool:
    return path in STATIC_FILES or path.startswith(STATIC_PREFIXES)


def classify_path(path: str) -> RouteKind:
    if is_static_path(path):
        return RouteKind.STATIC
    if is_api_path(path):
        return RouteKind.API
    if path in AUTH_PAGES:
        return RouteKind.AUTH_PAGE
    if is_public_path(path):
        return RouteKind.PUBLIC
    if path == DASHBOARD_HUB_PATH:
        return RouteKind.DASHBOARD_HUB
    if path.startswith(SCOPED_PREFIXES):
        return RouteKind.SCOPED
    return RouteKind.PROTECTED


def needs_session(kind: RouteKind) -> bool:
    """Whether the middleware has to resolve a session before deciding."""
    return kind not in (RouteKind.STATIC, RouteKind.API, RouteKind.PUBLIC)


def can_access_route(role: Optional[str], path: str) -> bool:
    """True if any role token grants a prefix of `path`.

    Prefix comparison is plain string prefix, so `/me` also grants `/media`.
    """
    return any(path.startswith(prefix) for prefix in allowed_prefixes(role))


def authorize(path: str, role: Optional[str], *, authenticated: bool) -> AccessDecision:
    """Decide allow / login redirect / dashboard redirect for one request.

    Parameters:
        path: Request path without query string.
        role: Raw role claim from the session (may be comma-separated).
        authenticated: Whether a session was resolved for the request.
    """
    kind = classify_path(path)
    if kind in (RouteKind.STATIC, RouteKind.API):
        return AccessDecision.allow()
    if kind is RouteKind.AUTH_PAGE:
        return AccessDecision.to_dashboard(role) if authenticated else AccessDecision.allow()
    if kind is RouteKind.PUBLIC:
        return AccessDecision.allow()
    if not authenticated:
        return AccessDecision.to_login(path)
    if kind is RouteKind.DASHBOARD_HUB:
        return AccessDecision.to_dashboard(role)
    if can_access_route(role, path):
        return AccessDecision.allow()
    return AccessDecision.to_dashboard(role)


__all__ = [
    "AccessDecision",
    "Outcome",
    "RouteKind",
    "PUBLIC_ROUTES",
    "AUTH_PAGES",
    "LOGIN_PATH",
    "SIGNUP_PATH",
    "DASHBOARD_HUB_PATH",
    "authorize",
    "can_access_route",
    "classify_path",
    "is_api_path",
    "is_public_path",
    "is_static_path",
    "login_url",
    "needs_session",
]
