"""
Identity domain constants and simple helpers.

Why:
- Centralize the role vocabulary and the role -> route prefix mapping so the
  middleware, navigation and permission checks cannot drift apart.
- Each role family has two names (the product name and the legacy name), e.g.
  "ceo" and "learner". Both map to the same dashboard.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles known to the auth provider."""
    LEARNER = "learner"
    CEO = "ceo"
    ADMIN = "admin"
    WORKER = "worker"
    EXECUTIVE = "executive"
    FRONTLINER = "frontliner"


ME_ROUTE = "/me"
TEAM_ROUTE = "/team"
ORG_ROUTE = "/org"

# Fallback dashboard for missing or unrecognized roles.
FALLBACK_ROUTE = ME_ROUTE

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset(r.value for r in Role)

ROLE_ROUTE_PREFIXES: dict[str, tuple[str, ...]] = {
    Role.LEARNER.value: (ME_ROUTE,),
    Role.CEO.value: (ME_ROUTE,),
    Role.ADMIN.value: (TEAM_ROUTE,),
    Role.WORKER.value: (TEAM_ROUTE,),
    Role.EXECUTIVE.value: (ORG_ROUTE,),
    Role.FRONTLINER.value: (ORG_ROUTE,),
}

DEFAULT_ROUTE_BY_ROLE: dict[str, str] = {
    Role.LEARNER.value: ME_ROUTE,
    Role.CEO.value: ME_ROUTE,
    Role.ADMIN.value: TEAM_ROUTE,
    Role.WORKER.value: TEAM_ROUTE,
    Role.EXECUTIVE.value: ORG_ROUTE,
    Role.FRONTLINER.value: ORG_ROUTE,
}

# Canonical family name per role; used for permissions and navigation labels.
ROLE_FAMILY: dict[str, str] = {
    Role.LEARNER.value: Role.LEARNER.value,
    Role.CEO.value: Role.LEARNER.value,
    Role.ADMIN.value: Role.ADMIN.value,
    Role.WORKER.value: Role.ADMIN.value,
    Role.EXECUTIVE.value: Role.EXECUTIVE.value,
    Role.FRONTLINER.value: Role.EXECUTIVE.value,
}


def parse_roles(role: str | None) -> list[str]:
    """Split a comma-separated role claim into trimmed tokens.

    Tokens are compared verbatim against the closed role set: "Admin" is an
    unknown role, and an empty token stays in place (" ,admin" has the empty
    string as its primary role).
    """
    if not role or not isinstance(role, str):
        return []
    return [token.strip() for token in role.split(",")]


def primary_role(role: str | None) -> str | None:
    tokens = parse_roles(role)
    return tokens[0] if tokens else None


def default_route_for_role(role: str | None) -> str:
    """Return the dashboard for the primary (first) role, `/me` otherwise."""
    primary = primary_role(role)
    if primary is None:
        return FALLBACK_ROUTE
    return DEFAULT_ROUTE_BY_ROLE.get(primary, FALLBACK_ROUTE)


def allowed_prefixes(role: str | None) -> tuple[str, ...]:
    """Union of route prefixes granted by all role tokens, in claim order."""
    seen: list[str] = []
    for token in parse_roles(role):
        for prefix in ROLE_ROUTE_PREFIXES.get(token, ()):
            if prefix not in seen:
                seen.append(prefix)
    return tuple(seen)


def unknown_roles(role: str | None) -> list[str]:
    return [token for token in parse_roles(role) if token not in ALLOWED_ROLES]


__all__ = [
    "Role",
    "ALLOWED_ROLES",
    "ROLE_ROUTE_PREFIXES",
    "DEFAULT_ROUTE_BY_ROLE",
    "ROLE_FAMILY",
    "ME_ROUTE",
    "TEAM_ROUTE",
    "ORG_ROUTE",
    "FALLBACK_ROUTE",
    "parse_roles",
    "primary_role",
    "default_route_for_role",
    "allowed_prefixes",
    "unknown_roles",
]
