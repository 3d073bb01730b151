"""Access-control statements per role family."""

import pytest

from identity_access.permissions import FAMILY_GRANTS, STATEMENT, permissions_for, role_has_permission


def test_family_grants_are_subsets_of_the_statement():
    for family, grants in FAMILY_GRANTS.items():
        for resource, actions in grants.items():
            assert actions <= STATEMENT[resource], (family, resource)


@pytest.mark.parametrize("role", ["learner", "ceo"])
def test_learner_family_manages_personal_development(role):
    assert role_has_permission(role, "personal", "goals")
    assert not role_has_permission(role, "team", "view")
    assert not role_has_permission(role, "organization", "view")


@pytest.mark.parametrize("role", ["admin", "worker"])
def test_admin_family_manages_team(role):
    assert role_has_permission(role, "team", "manage")
    assert role_has_permission(role, "user", "assign-role")
    assert not role_has_permission(role, "user", "delete")
    assert not role_has_permission(role, "organization", "reports")


@pytest.mark.parametrize("role", ["executive", "frontliner"])
def test_executive_family_oversees_organization(role):
    assert role_has_permission(role, "organization", "strategy")
    assert role_has_permission(role, "user", "delete")
    assert not role_has_permission(role, "system", "audit")


def test_unknown_inputs_never_grant():
    assert not role_has_permission("foo", "personal", "view")
    assert not role_has_permission("admin", "nope", "view")
    assert not role_has_permission("admin", "team", "fly")
    assert not role_has_permission("Admin", "team", "view")


def test_permissions_for_merges_multi_role_claims():
    perms = permissions_for("admin,executive")
    assert perms["team"] == ["analytics", "courses", "manage", "messages", "tasks", "view"]
    assert "reports" in perms["organization"]
    assert permissions_for("foo") == {}
    assert permissions_for(None) == {}
