"""
Access-control statements for the three role families.

Route prefixes decide which dashboard a user may open; these statements
decide what a user may do once there. Grants are defined per family and
shared by both role names of a family (e.g. "ceo" and "learner").
"""

from __future__ import annotations

from typing import Mapping

from .domain import ROLE_FAMILY, Role, parse_roles

STATEMENT: Mapping[str, frozenset[str]] = {
    "personal": frozenset({"view", "update", "goals", "games", "learning"}),
    "team": frozenset({"view", "manage", "tasks", "courses", "messages", "analytics"}),
    "organization": frozenset({"view", "manage", "reports", "presentation", "strategy"}),
    "project": frozenset({"create", "read", "update", "delete", "share"}),
    "user": frozenset({"view", "create", "update", "delete", "assign-role", "ban"}),
    "analytics": frozenset({"view", "export", "dashboard", "insights"}),
    "system": frozenset({"settings", "integrations", "security", "audit"}),
}

FAMILY_GRANTS: Mapping[str, Mapping[str, frozenset[str]]] = {
    # Personal development: goals, games, learning modules.
    Role.LEARNER.value: {
        "personal": frozenset({"view", "update", "goals", "games", "learning"}),
        "project": frozenset({"create", "read", "update"}),
        "analytics": frozenset({"view", "dashboard"}),
    },
    # Team management: learners, curriculum, tasks, messages.
    Role.ADMIN.value: {
        "team": frozenset({"view", "manage", "tasks", "courses", "messages", "analytics"}),
        "user": frozenset({"view", "update", "assign-role"}),
        "project": frozenset({"create", "read", "update", "delete"}),
        "analytics": frozenset({"view", "dashboard", "insights"}),
        "personal": frozenset({"view"}),
    },
    # Organization oversight: reports, strategy, user administration.
    Role.EXECUTIVE.value: {
        "organization": frozenset({"view", "manage", "reports", "presentation", "strategy"}),
        "team": frozenset({"view", "analytics"}),
        "user": frozenset({"view", "create", "update", "delete", "assign-role"}),
        "project": frozenset({"create", "read", "update", "delete", "share"}),
        "analytics": frozenset({"view", "export", "dashboard", "insights"}),
        "system": frozenset({"settings", "integrations", "security"}),
        "personal": frozenset({"view"}),
    },
}


def role_has_permission(role: str, resource: str, action: str) -> bool:
    """Return True if a single role name grants `action` on `resource`.

    Unknown roles, resources or actions never grant anything.
    """
    family = ROLE_FAMILY.get((role or "").strip())
    if family is None:
        return False
    if action not in STATEMENT.get(resource, frozenset()):
        return False
    return action in FAMILY_GRANTS[family].get(resource, frozenset())


def permissions_for(role: str | None) -> dict[str, list[str]]:
    """Union of grants across all tokens of a (comma-separated) role claim.

    Returns a JSON-friendly mapping with sorted action lists; resources
    without any granted action are omitted.
    """
    merged: dict[str, set[str]] = {}
    for token in parse_roles(role):
        family = ROLE_FAMILY.get(token)
        if family is None:
            continue
        for resource, actions in FAMILY_GRANTS[family].items():
            merged.setdefault(resource, set()).update(actions)
    return {resource: sorted(actions) for resource, actions in sorted(merged.items())}


__all__ = ["STATEMENT", "FAMILY_GRANTS", "role_has_permission", "permissions_for"]
