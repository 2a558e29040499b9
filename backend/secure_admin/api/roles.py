from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import rbac
from ..auth.guard import require_permission
from ..dependencies import get_activity_recorder, get_db, get_request_context
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.role import RoleCreate, RoleDetail, RoleList, RoleResponse, RoleUpdate
from ..services.admin import RoleService
from ..services.audit import ActivityRecorder, RequestContext

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=RoleList)
async def list_roles(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.ROLES_READ)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RoleList:
    service = RoleService(db, recorder)
    return RoleList(roles=await service.list_roles())


@router.get("/{role_id}", response_model=RoleDetail)
async def get_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.ROLES_READ)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> RoleDetail:
    service = RoleService(db, recorder)
    role = await service.get_role(role_id)
    return RoleDetail(role=RoleResponse.model_validate(role))


@router.post("", response_model=RoleDetail, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.ROLES_CREATE)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    context: RequestContext = Depends(get_request_context),
) -> RoleDetail:
    """
    Create a role.

    Requires: roles.create. Every permission must be in the catalog and the
    name must be unused.
    """
    service = RoleService(db, recorder)
    role = await service.create_role(payload, actor=current_user, context=context)
    return RoleDetail(role=RoleResponse.model_validate(role))


@router.patch("/{role_id}", response_model=RoleDetail)
async def update_role(
    role_id: str,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.ROLES_UPDATE)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    context: RequestContext = Depends(get_request_context),
) -> RoleDetail:
    service = RoleService(db, recorder)
    role = await service.update_role(role_id, payload, actor=current_user, context=context)
    return RoleDetail(role=RoleResponse.model_validate(role))


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.ROLES_DELETE)),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    context: RequestContext = Depends(get_request_context),
) -> MessageResponse:
    service = RoleService(db, recorder)
    await service.delete_role(role_id, actor=current_user, context=context)
    return MessageResponse(message="Role deleted successfully")
