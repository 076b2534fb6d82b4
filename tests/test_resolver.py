# tests/test_resolver.py

"""
Tests for permission resolution and the membership checks built on it.
"""

import pytest
from sqlalchemy.exc import OperationalError

from app.features.permissions import repository
from app.features.permissions.catalog import ALL_KEYS
from app.features.permissions.exceptions import ResolutionFailure
from app.features.permissions.resolver import (
    ALL_PROPERTIES,
    EffectivePermissions,
    accessible_property_ids,
    has_all_permissions,
    has_any_permission,
    has_permission,
    resolve_permissions,
)


# ============================================================================
# Membership checks on a hand-built result
# ============================================================================

def test_global_grant_applies_to_every_property():
    perms = EffectivePermissions(global_permissions={"expense.view"})

    assert has_permission(perms, "expense.view")
    assert has_permission(perms, "expense.view", 42)
    assert has_permission(perms, "expense.view", 999)


def test_scoped_grant_does_not_leak():
    perms = EffectivePermissions(by_property={7: {"expense.view"}})

    assert has_permission(perms, "expense.view", 7)
    assert not has_permission(perms, "expense.view", 8)
    assert not has_permission(perms, "expense.view")


def test_any_and_all_thread_property_id():
    perms = EffectivePermissions(
        global_permissions={"tenant.view"},
        by_property={3: {"lease.view"}},
    )

    assert has_any_permission(perms, ["lease.view", "loan.view"], 3)
    assert not has_any_permission(perms, ["lease.view", "loan.view"], 4)
    assert has_all_permissions(perms, ["tenant.view", "lease.view"], 3)
    assert not has_all_permissions(perms, ["tenant.view", "lease.view"])
    assert not has_any_permission(perms, [])
    assert has_all_permissions(perms, [])


def test_accessible_property_ids():
    assert accessible_property_ids(EffectivePermissions()) == []
    assert accessible_property_ids(
        EffectivePermissions(global_permissions={"property.view"})
    ) == ALL_PROPERTIES
    assert accessible_property_ids(
        EffectivePermissions(by_property={9: {"property.view"}, 2: {"property.view"}, 5: {"expense.view"}})
    ) == [2, 9]


# ============================================================================
# Resolution against the database
# ============================================================================

@pytest.mark.asyncio
async def test_unknown_user_resolves_empty(db):
    perms = await resolve_permissions(db, 12345)
    assert perms.is_empty()


@pytest.mark.asyncio
async def test_user_without_assignments_has_nothing(db, make):
    user = await make.user("nobody")

    perms = await resolve_permissions(db, user.id)

    assert perms.global_permissions == set()
    assert perms.by_property == {}
    for key in ALL_KEYS:
        assert not has_permission(perms, key)
        assert not has_permission(perms, key, 1)


@pytest.mark.asyncio
async def test_super_admin_gets_whole_catalog(db, make, system_roles):
    admin = await make.user("root", super_admin=True)
    viewer_only = await make.role("NARROW", ["expense.view"])
    # Assignments are ignored for super-admins, active or not
    await make.assign(admin, viewer_only, property_id=3)
    await make.assign(admin, system_roles["VIEWER"], active=False)

    perms = await resolve_permissions(db, admin.id)

    assert perms.global_permissions == set(ALL_KEYS)
    assert perms.by_property == {}
    assert accessible_property_ids(perms) == ALL_PROPERTIES


@pytest.mark.asyncio
async def test_super_admin_skips_assignment_reads(db, make, monkeypatch):
    admin = await make.user("root", super_admin=True)

    async def fail(*args, **kwargs):
        raise AssertionError("assignments must not be read for super-admins")

    monkeypatch.setattr(repository, "get_active_assignments", fail)

    perms = await resolve_permissions(db, admin.id)
    assert len(perms.global_permissions) == len(ALL_KEYS)


@pytest.mark.asyncio
async def test_global_assignment_scenario_b(db, make):
    user = await make.user("v")
    role = await make.role("EXPENSE_READER", ["expense.view"])
    await make.assign(user, role)

    perms = await resolve_permissions(db, user.id)

    assert perms.global_permissions == {"expense.view"}
    assert has_permission(perms, "expense.view", 42)


@pytest.mark.asyncio
async def test_scoped_assignment_scenario_c(db, make):
    owner = await make.user("owner")
    prop = await make.property(owner)
    user = await make.user("w")
    role = await make.role("PROP_VIEWER", ["property.view"])
    await make.assign(user, role, property_id=prop.id)

    perms = await resolve_permissions(db, user.id)

    assert perms.global_permissions == set()
    assert perms.by_property == {prop.id: {"property.view"}}
    assert accessible_property_ids(perms) == [prop.id]


@pytest.mark.asyncio
async def test_same_key_from_two_roles_collapses(db, make):
    user = await make.user("dup")
    first = await make.role("FIRST", ["expense.view", "tenant.view"])
    second = await make.role("SECOND", ["expense.view"])
    await make.assign(user, first)
    await make.assign(user, second)
    await make.assign(user, first, property_id=4)
    await make.assign(user, second, property_id=4)

    perms = await resolve_permissions(db, user.id)

    assert perms.global_permissions == {"expense.view", "tenant.view"}
    assert perms.by_property[4] == {"expense.view", "tenant.view"}
    assert perms.as_dict()["global_permissions"] == ["expense.view", "tenant.view"]


@pytest.mark.asyncio
async def test_deactivation_removes_and_reactivation_restores(db, make):
    user = await make.user("toggle")
    role = await make.role("COMPLIANCE", ["compliance.view"])
    assignment = await make.assign(user, role, property_id=2)

    assert has_permission(await resolve_permissions(db, user.id), "compliance.view", 2)

    await make.set_active(assignment, False)
    perms = await resolve_permissions(db, user.id)
    assert perms.is_empty()
    assert not has_permission(perms, "compliance.view", 2)

    await make.set_active(assignment, True)
    assert has_permission(await resolve_permissions(db, user.id), "compliance.view", 2)


@pytest.mark.asyncio
async def test_global_and_scoped_grants_are_kept_apart(db, make, system_roles):
    user = await make.user("mixed")
    await make.assign(user, system_roles["ACCOUNTANT"])
    await make.assign(user, system_roles["MAINTENANCE_SUPERVISOR"], property_id=11)

    perms = await resolve_permissions(db, user.id)

    assert "expense.view" in perms.global_permissions
    assert "maintenance.manage" not in perms.global_permissions
    assert has_permission(perms, "maintenance.manage", 11)
    assert not has_permission(perms, "maintenance.manage", 12)
    # Global property.view from ACCOUNTANT covers every property
    assert accessible_property_ids(perms) == ALL_PROPERTIES


@pytest.mark.asyncio
async def test_role_without_permissions_contributes_nothing(db, make):
    user = await make.user("empty-role")
    role = await make.role("HOLLOW", [])
    await make.assign(user, role)
    await make.assign(user, role, property_id=1)

    perms = await resolve_permissions(db, user.id)

    assert perms.global_permissions == set()
    assert perms.by_property == {1: set()}
    assert accessible_property_ids(perms) == []


@pytest.mark.asyncio
async def test_data_failure_raises_resolution_failure(db, make, monkeypatch):
    user = await make.user("broken")

    async def boom(*args, **kwargs):
        raise OperationalError("SELECT ...", {}, Exception("database is locked"))

    monkeypatch.setattr(repository, "get_active_assignments", boom)

    with pytest.raises(ResolutionFailure) as exc_info:
        await resolve_permissions(db, user.id)
    assert isinstance(exc_info.value.__cause__, OperationalError)
