import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity_log import ActivityLog
from ..models.file_upload import FileUpload
from ..models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_external_id(self, external_id: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.external_id == external_id)
        )
        return result.unique().scalar_one_or_none()

    async def create(
        self,
        external_id: str,
        email: str,
        role_id: str,
        first_name: str = "",
        last_name: str = "",
        avatar_url: str | None = None,
    ) -> User:
        user = User(
            external_id=external_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
            role_id=role_id,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def list_with_counts(self) -> list[tuple[User, int, int]]:
        """Return every user with their uploaded-file and activity counts."""
        file_count = (
            select(FileUpload.owner_id, func.count(FileUpload.id).label("file_count"))
            .group_by(FileUpload.owner_id)
            .subquery()
        )
        activity_count = (
            select(ActivityLog.user_id, func.count(ActivityLog.id).label("activity_count"))
            .group_by(ActivityLog.user_id)
            .subquery()
        )
        result = await self.session.execute(
            select(
                User,
                func.coalesce(file_count.c.file_count, 0),
                func.coalesce(activity_count.c.activity_count, 0),
            )
            .outerjoin(file_count, file_count.c.owner_id == User.id)
            .outerjoin(activity_count, activity_count.c.user_id == User.id)
            .order_by(User.created_at.desc())
        )
        return [
            (user, int(files), int(activities))
            for user, files, activities in result.unique().all()
        ]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(User))
        return result.scalar() or 0

    async def update(self, user: User) -> User:
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()
