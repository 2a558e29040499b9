"""
Request guard - permission, ownership and scoping rules for endpoints.

Every protected endpoint depends on ``require_permission(<Permission>)``,
which resolves the caller (401 when absent, lazily provisioned otherwise) and
checks the role table (403 when the permission is missing). The 403 message is
generic; the missing permission is only written to the server log.
"""
from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import Depends, Request

from ..dependencies import get_current_user
from ..errors import PermissionError
from ..models.user import User
from . import rbac

logger = logging.getLogger("secure_admin.rbac")


def _log_deny(request: Request | None, user: User, required: str) -> None:
    method = request.method if request is not None else "n/a"
    path = request.url.path if request is not None else "n/a"
    logger.warning(
        "Permission denied user=%s role=%s required=%s method=%s path=%s",
        user.id,
        user.role_name,
        required,
        method,
        path,
    )


def require_permission(permission: rbac.Permission) -> Callable:
    """
    Build a dependency that returns the caller when ``permission`` is granted.

    Raises:
        AuthError: No identity on the request (via get_current_user)
        ConfigurationError: Default role missing during provisioning
        PermissionError: Role lacks ``permission``
    """
    async def dependency(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        if not rbac.has_permission(user.role_name, permission):
            _log_deny(request, user, permission.value)
            raise PermissionError()
        return user

    return dependency


def is_admin(user: User) -> bool:
    return rbac.is_admin_role(user.role_name)


def resolve_owner_scope(user: User, requested_owner_id: uuid.UUID | None) -> uuid.UUID | None:
    """
    Owner filter to apply before any caller-supplied filter.

    Non-admins are always pinned to their own records, whatever they ask for.
    Admins get the requested owner, or None for every record.
    """
    if not is_admin(user):
        return user.id
    return requested_owner_id


def is_owner_or_admin(owner_id: uuid.UUID | None, user: User) -> bool:
    return owner_id == user.id or is_admin(user)


def ensure_owner_or_admin(owner_id: uuid.UUID | None, user: User) -> None:
    if not is_owner_or_admin(owner_id, user):
        logger.warning(
            "Ownership check failed user=%s role=%s owner=%s",
            user.id,
            user.role_name,
            owner_id,
        )
        raise PermissionError()


def ensure_role(user: User, *allowed: rbac.RoleName) -> None:
    """Hard-coded role gate used by the self-protection guard clauses."""
    if user.role_name not in {role.value for role in allowed}:
        logger.warning(
            "Role gate failed user=%s role=%s allowed=%s",
            user.id,
            user.role_name,
            [role.value for role in allowed],
        )
        raise PermissionError()
