from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.guard import is_admin
from ...crud.activity_log import ActivityLogRepository
from ...crud.file_upload import FileUploadRepository
from ...crud.role import RoleRepository
from ...crud.user import UserRepository
from ...models.user import User
from ...schemas.dashboard import DashboardStats

RECENT_ACTIVITY_WINDOW = timedelta(hours=24)


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.user_repo = UserRepository(session)
        self.file_repo = FileUploadRepository(session)
        self.role_repo = RoleRepository(session)
        self.activity_repo = ActivityLogRepository(session)

    async def get_stats(self, actor: User, now: datetime | None = None) -> DashboardStats:
        """Headline counts; non-admins only see counts of their own records."""
        now = now or datetime.now(timezone.utc)
        admin = is_admin(actor)
        owner_id = None if admin else actor.id

        return DashboardStats(
            total_users=await self.user_repo.count() if admin else 1,
            total_files=await self.file_repo.count(owner_id=owner_id),
            active_roles=await self.role_repo.count(),
            recent_activity=await self.activity_repo.count(
                user_id=owner_id,
                since=now - RECENT_ACTIVITY_WINDOW,
            ),
        )
