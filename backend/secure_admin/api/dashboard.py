from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import rbac
from ..auth.guard import require_permission
from ..dependencies import get_db
from ..models.user import User
from ..schemas.dashboard import DashboardStatsResponse
from ..services.admin import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(rbac.Permission.DASHBOARD_READ)),
) -> DashboardStatsResponse:
    service = DashboardService(db)
    return DashboardStatsResponse(stats=await service.get_stats(current_user))
