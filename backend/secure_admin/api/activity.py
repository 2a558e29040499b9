from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import rbac
from ..auth.guard import require_permission
from ..dependencies import get_db
from ..models.user import User
from ..schemas.activity_log import ActivityLogList
from ..schemas.filters import ActionType, ActivityLogFilter, TimeRange
from ..services.admin import ActivityService

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("", response_model=ActivityLogList)
async def list_activity(
    search: str | None = Query(None, max_length=200, description="Action, name or email"),
    action_type: ActionType | None = Query(None, alias="actionType"),
    time_range: TimeRange | None = Query(None, alias="timeRange"),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    user_id: UUID | None = Query(None, alias="userId", description="Admins only"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.ACTIVITY_READ)),
) -> ActivityLogList:
    """
    List activity entries, newest first.

    Requires: activity.read. Non-admin callers only see their own entries.
    """
    filters = ActivityLogFilter(
        search=search,
        action_type=action_type,
        time_range=time_range,
        date_from=date_from,
        date_to=date_to,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )
    service = ActivityService(db)
    return await service.list_activity(filters, actor=current_user)
