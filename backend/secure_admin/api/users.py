"""
User management endpoints.

Requires: users.read / users.create / users.update / users.delete, except
``/users/me`` which any signed-in role with dashboard access may call.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import rbac
from ..auth.guard import require_permission
from ..dependencies import get_activity_recorder, get_db, get_request_context
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.user import (
    CurrentUserDetail,
    CurrentUserResponse,
    UserCreate,
    UserDetail,
    UserList,
    UserResponse,
    UserRoleUpdate,
)
from ..services.admin import UserService
from ..services.audit import ActivityRecorder, RequestContext

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserList)
async def list_users(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.USERS_READ)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> UserList:
    """List every user with their role, file and activity counts."""
    service = UserService(db, recorder)
    return UserList(users=await service.list_users())


@router.get("/me", response_model=CurrentUserDetail)
async def get_me(
    current_user: User = Depends(require_permission(rbac.Permission.DASHBOARD_READ)),
) -> CurrentUserDetail:
    permissions = sorted(p.value for p in rbac.get_role_permissions(current_user.role_name))
    user = CurrentUserResponse(
        **UserResponse.model_validate(current_user).model_dump(),
        permissions=permissions,
    )
    return CurrentUserDetail(user=user)


@router.post("", response_model=UserDetail, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.USERS_CREATE)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    context: RequestContext = Depends(get_request_context),
) -> UserDetail:
    service = UserService(db, recorder)
    user = await service.create_user(payload, actor=current_user, context=context)
    return UserDetail(user=UserResponse.model_validate(user))


@router.patch("/{user_id}", response_model=UserDetail)
async def update_user_role(
    user_id: UUID,
    payload: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.USERS_UPDATE)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    context: RequestContext = Depends(get_request_context),
) -> UserDetail:
    """
    Reassign a user's role.

    Requires: users.update, and the caller must be SuperAdmin or Admin.
    """
    service = UserService(db, recorder)
    user = await service.update_user_role(
        user_id, payload.role_id, actor=current_user, context=context
    )
    return UserDetail(user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.USERS_DELETE)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    context: RequestContext = Depends(get_request_context),
) -> MessageResponse:
    """
    Delete a user and, by cascade, their uploads.

    Requires: users.delete, and the caller must be SuperAdmin. Deleting
    yourself is refused.
    """
    service = UserService(db, recorder)
    await service.delete_user(user_id, actor=current_user, context=context)
    return MessageResponse(message="User deleted successfully")
