"""
User management.

Guard clauses:
- role reassignment is reserved for SuperAdmin/Admin callers
- deletion is reserved for SuperAdmin callers, and never of oneself
"""
import logging
import time
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.guard import ensure_role
from ...auth.rbac import RoleName
from ...crud.role import RoleRepository
from ...crud.user import UserRepository
from ...errors import NotFoundError, ValidationError
from ...models.user import User
from ...schemas.user import UserCreate, UserListItem
from ..audit import ActivityAction, ActivityRecorder, RequestContext

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession, recorder: ActivityRecorder):
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)
        self.recorder = recorder

    async def list_users(self) -> list[UserListItem]:
        rows = await self.user_repo.list_with_counts()
        return [
            UserListItem.model_validate(user).model_copy(
                update={"file_count": files, "activity_count": activities}
            )
            for user, files, activities in rows
        ]

    async def get_user(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def create_user(
        self,
        data: UserCreate,
        actor: User,
        context: RequestContext,
    ) -> User:
        role = await self.role_repo.get_by_id(data.role_id)
        if role is None:
            raise NotFoundError("Role not found")

        # Placeholder subject until the person signs in through the identity provider
        user = await self.user_repo.create(
            external_id=f"pending_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}",
            email=str(data.email),
            first_name=data.first_name,
            last_name=data.last_name,
            role_id=role.id,
        )
        await self.session.commit()

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.USER_CREATED,
            details={
                "new_user_id": str(user.id),
                "new_user_email": user.email,
                "role": role.name,
            },
            context=context,
        )
        return user

    async def update_user_role(
        self,
        user_id: uuid.UUID,
        role_id: str,
        actor: User,
        context: RequestContext,
    ) -> User:
        ensure_role(actor, RoleName.SUPER_ADMIN, RoleName.ADMIN)

        user = await self.get_user(user_id)
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role not found")

        previous_role = user.role_name
        user.role_id = role.id
        user = await self.user_repo.update(user)
        await self.session.commit()
        logger.info(
            "User role changed user=%s %s -> %s by=%s",
            user.id,
            previous_role,
            role.name,
            actor.id,
        )

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.USER_UPDATED,
            details={
                "user_id": str(user.id),
                "user_email": user.email,
                "previous_role": previous_role,
                "role": role.name,
            },
            context=context,
        )
        return user

    async def delete_user(
        self,
        user_id: uuid.UUID,
        actor: User,
        context: RequestContext,
    ) -> None:
        ensure_role(actor, RoleName.SUPER_ADMIN)

        if actor.id == user_id:
            raise ValidationError("Cannot delete yourself")

        user = await self.get_user(user_id)
        details = {"user_id": str(user.id), "user_email": user.email}
        await self.user_repo.delete(user)
        await self.session.commit()
        logger.info("User deleted id=%s by=%s", user_id, actor.id)

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.USER_DELETED,
            details=details,
            context=context,
        )
