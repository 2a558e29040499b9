import pytest

from secure_admin.auth import rbac
from secure_admin.auth.rbac import Permission, RoleName


def test_every_role_in_table() -> None:
    assert set(rbac.ROLES) == {role.value for role in RoleName}


def test_seeded_role_ids_are_stable() -> None:
    assert {name: d.id for name, d in rbac.ROLES.items()} == {
        "SuperAdmin": "super-admin",
        "Admin": "admin",
        "Manager": "manager",
        "User": "user",
        "Guest": "guest",
    }


def test_super_admin_has_every_permission() -> None:
    assert rbac.get_role_permissions(RoleName.SUPER_ADMIN) == frozenset(Permission)


@pytest.mark.parametrize("role_name", [role.value for role in RoleName])
@pytest.mark.parametrize("permission", [p.value for p in Permission])
def test_has_permission_matches_role_table(role_name: str, permission: str) -> None:
    granted = {p.value for p in rbac.ROLES[role_name].permissions}
    assert rbac.has_permission(role_name, permission) is (permission in granted)


def test_has_permission_accepts_enum_members() -> None:
    assert rbac.has_permission(RoleName.ADMIN, Permission.USERS_DELETE) is True
    assert rbac.has_permission(RoleName.MANAGER, Permission.USERS_DELETE) is False


@pytest.mark.parametrize("role_name", ["Auditor", "superadmin", "", None])
def test_unknown_role_has_no_permissions(role_name) -> None:
    for permission in Permission:
        assert rbac.has_permission(role_name, permission) is False
    assert rbac.get_role_permissions(role_name) == frozenset()


def test_uncatalogued_permission_is_denied() -> None:
    assert rbac.has_permission(RoleName.SUPER_ADMIN, "users.*") is False
    assert rbac.has_permission(RoleName.SUPER_ADMIN, "billing.read") is False


def test_can_access_composes_resource_and_action() -> None:
    assert rbac.can_access("Manager", "activity", "read") is True
    assert rbac.can_access("User", "users", "read") is False
    assert rbac.can_access("SuperAdmin", "reports", "export") is False


def test_guest_only_sees_dashboard() -> None:
    assert rbac.get_role_permissions(RoleName.GUEST) == frozenset({Permission.DASHBOARD_READ})


def test_is_admin_role() -> None:
    assert rbac.is_admin_role("SuperAdmin")
    assert rbac.is_admin_role(RoleName.ADMIN)
    assert not rbac.is_admin_role("Manager")
    assert not rbac.is_admin_role(None)


def test_validate_permission_rejects_wildcard() -> None:
    with pytest.raises(ValueError, match="Wildcard permission"):
        rbac.validate_permission("files.*")


def test_validate_permission_rejects_unknown_token() -> None:
    with pytest.raises(ValueError, match="Invalid permission 'files.share'"):
        rbac.validate_permission("files.share")


def test_normalize_permissions_sorts_and_dedupes() -> None:
    assert rbac.normalize_permissions(["files.upload", "files.read", "files.upload"]) == [
        "files.read",
        "files.upload",
    ]
