"""
RBAC contract - permission catalog, role table and the authorization check.

The role table is authoritative seed data. It is validated when this module
is imported, and persisted roles are upserted from it by role id (see
``secure_admin.crud.role.RoleRepository.upsert_definition``).

Runtime checks go through ``has_permission``. It is a pure lookup keyed by
role name: an unknown role has no permissions, and the check never raises.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping


# ============================================================================
# PERMISSIONS - CLOSED CATALOG, <resource>.<action>
# ============================================================================

class Permission(str, Enum):
    USERS_READ = "users.read"
    USERS_CREATE = "users.create"
    USERS_UPDATE = "users.update"
    USERS_DELETE = "users.delete"

    ROLES_READ = "roles.read"
    ROLES_CREATE = "roles.create"
    ROLES_UPDATE = "roles.update"
    ROLES_DELETE = "roles.delete"

    FILES_UPLOAD = "files.upload"
    FILES_READ = "files.read"
    FILES_DELETE = "files.delete"

    DASHBOARD_READ = "dashboard.read"
    ACTIVITY_READ = "activity.read"


PERMISSION_CATALOG: Final[frozenset[str]] = frozenset(p.value for p in Permission)


# ============================================================================
# ROLES
# ============================================================================

class RoleName(str, Enum):
    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    MANAGER = "Manager"
    USER = "User"
    GUEST = "Guest"


DEFAULT_ROLE: Final[RoleName] = RoleName.USER

# Roles that see every record and may act on records they do not own
ADMIN_ROLES: Final[frozenset[str]] = frozenset({
    RoleName.SUPER_ADMIN.value,
    RoleName.ADMIN.value,
})


@dataclass(frozen=True)
class RoleDefinition:
    id: str
    name: RoleName
    description: str
    permissions: frozenset[Permission]


_ROLE_TABLE: dict[str, RoleDefinition] = {
    RoleName.SUPER_ADMIN.value: RoleDefinition(
        id="super-admin",
        name=RoleName.SUPER_ADMIN,
        description="Full system access with all permissions",
        permissions=frozenset(Permission),
    ),
    RoleName.ADMIN.value: RoleDefinition(
        id="admin",
        name=RoleName.ADMIN,
        description="Administrative access with user and file management",
        permissions=frozenset({
            Permission.USERS_READ,
            Permission.USERS_CREATE,
            Permission.USERS_UPDATE,
            Permission.USERS_DELETE,
            Permission.ROLES_READ,
            Permission.ROLES_UPDATE,
            Permission.FILES_UPLOAD,
            Permission.FILES_READ,
            Permission.FILES_DELETE,
            Permission.DASHBOARD_READ,
            Permission.ACTIVITY_READ,
        }),
    ),
    RoleName.MANAGER.value: RoleDefinition(
        id="manager",
        name=RoleName.MANAGER,
        description="Management access with limited administrative functions",
        permissions=frozenset({
            Permission.USERS_READ,
            Permission.USERS_UPDATE,
            Permission.FILES_UPLOAD,
            Permission.FILES_READ,
            Permission.DASHBOARD_READ,
            Permission.ACTIVITY_READ,
        }),
    ),
    RoleName.USER.value: RoleDefinition(
        id="user",
        name=RoleName.USER,
        description="Standard user with basic file operations",
        permissions=frozenset({
            Permission.FILES_UPLOAD,
            Permission.FILES_READ,
            Permission.DASHBOARD_READ,
        }),
    ),
    RoleName.GUEST.value: RoleDefinition(
        id="guest",
        name=RoleName.GUEST,
        description="Limited access for viewing only",
        permissions=frozenset({
            Permission.DASHBOARD_READ,
        }),
    ),
}

ROLES: Final[Mapping[str, RoleDefinition]] = MappingProxyType(_ROLE_TABLE)

# Flattened to plain strings so lookups accept enum members and raw tokens alike
_PERMISSION_INDEX: Final[Mapping[str, frozenset[str]]] = MappingProxyType({
    name: frozenset(p.value for p in definition.permissions)
    for name, definition in _ROLE_TABLE.items()
})


def _key(value: str | Enum) -> str:
    return value.value if isinstance(value, Enum) else value


# ============================================================================
# AUTHORIZATION CHECK
# ============================================================================

def has_permission(role_name: str | RoleName | None, permission: str | Permission) -> bool:
    """Return True iff ``permission`` is granted to ``role_name``.

    Unknown roles (including roles created at runtime that are absent from the
    role table) are treated as having no permissions.
    """
    if role_name is None:
        return False
    granted = _PERMISSION_INDEX.get(_key(role_name))
    if granted is None:
        return False
    return _key(permission) in granted


def can_access(role_name: str | RoleName | None, resource: str, action: str) -> bool:
    """Check ``<resource>.<action>``; an uncatalogued token degrades to False."""
    return has_permission(role_name, f"{resource}.{action}")


def get_role_permissions(role_name: str | RoleName | None) -> frozenset[Permission]:
    if role_name is None:
        return frozenset()
    definition = ROLES.get(_key(role_name))
    if definition is None:
        return frozenset()
    return definition.permissions


def is_admin_role(role_name: str | RoleName | None) -> bool:
    if role_name is None:
        return False
    return _key(role_name) in ADMIN_ROLES


# ============================================================================
# VALIDATION
# ============================================================================

def validate_permission(permission: str) -> None:
    """
    Raise ValueError unless ``permission`` is in the catalog.

    Wildcards are never part of the catalog and are rejected explicitly so the
    error message says why.
    """
    if permission.endswith("*"):
        raise ValueError(
            f"Wildcard permission '{permission}' is not allowed. "
            "All permissions must be explicit."
        )
    if permission not in PERMISSION_CATALOG:
        raise ValueError(
            f"Invalid permission '{permission}'. "
            f"Permission must be one of: {', '.join(sorted(PERMISSION_CATALOG))}"
        )


def normalize_permissions(permissions: list[str] | tuple[str, ...] | set[str]) -> list[str]:
    """Validate every token and return a sorted, de-duplicated list."""
    for permission in permissions:
        validate_permission(permission)
    return sorted(set(permissions))


def _validate_contract() -> None:
    """Validate the role table at import time."""
    errors = []

    missing = {role.value for role in RoleName} - set(_ROLE_TABLE)
    if missing:
        errors.append(f"Roles missing from table: {sorted(missing)}")

    seen_ids: set[str] = set()
    for name, definition in _ROLE_TABLE.items():
        if definition.name.value != name:
            errors.append(f"Role '{name}' is keyed under the wrong name")
        if definition.id in seen_ids:
            errors.append(f"Duplicate role id: {definition.id}")
        seen_ids.add(definition.id)
        for permission in definition.permissions:
            if permission.value not in PERMISSION_CATALOG:
                errors.append(f"Role '{name}' has invalid permission: {permission}")

    super_admin = _PERMISSION_INDEX.get(RoleName.SUPER_ADMIN.value, frozenset())
    for name, granted in _PERMISSION_INDEX.items():
        if not granted <= super_admin:
            errors.append(f"Role '{name}' grants permissions SuperAdmin lacks")

    if errors:
        raise RuntimeError(
            "RBAC contract validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )


_validate_contract()
