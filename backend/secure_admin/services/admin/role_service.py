"""
Role management.

Guard clauses (explicit, independent of permission bits):
- the SuperAdmin role can never be deleted
- built-in roles keep their names, and custom roles can not take one
- a role referenced by any user can not be deleted
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.rbac import ROLES, RoleName
from ...crud.role import RoleRepository
from ...errors import NotFoundError, ValidationError
from ...models.role import Role
from ...models.user import User
from ...schemas.role import RoleCreate, RoleResponse, RoleUpdate
from ..audit import ActivityAction, ActivityRecorder, RequestContext

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, session: AsyncSession, recorder: ActivityRecorder):
        self.session = session
        self.role_repo = RoleRepository(session)
        self.recorder = recorder

    async def list_roles(self) -> list[RoleResponse]:
        rows = await self.role_repo.list_with_user_counts()
        return [
            RoleResponse.model_validate(role).model_copy(update={"user_count": count})
            for role, count in rows
        ]

    async def get_role(self, role_id: str) -> Role:
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        return role

    async def create_role(
        self,
        data: RoleCreate,
        actor: User,
        context: RequestContext,
    ) -> Role:
        if await self.role_repo.get_by_name(data.name) is not None:
            raise ValidationError("Role name already exists")

        role = await self.role_repo.create(
            name=data.name,
            description=data.description,
            permissions=data.permissions,
        )
        await self.session.commit()
        logger.info("Role created id=%s name=%s by=%s", role.id, role.name, actor.id)

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.ROLE_CREATED,
            details={
                "role_id": role.id,
                "role_name": role.name,
                "permissions": list(role.permissions),
            },
            context=context,
        )
        return role

    async def update_role(
        self,
        role_id: str,
        data: RoleUpdate,
        actor: User,
        context: RequestContext,
    ) -> Role:
        role = await self.get_role(role_id)
        before = {
            "name": role.name,
            "description": role.description,
            "permissions": list(role.permissions),
        }

        changes = data.model_dump(exclude_unset=True)
        new_name = changes.get("name")
        if new_name is not None and new_name != role.name:
            # Permission checks and provisioning look roles up by name
            if role.name in ROLES:
                raise ValidationError(f"The {role.name} role cannot be renamed")
            if new_name in ROLES:
                raise ValidationError("Role name is reserved for a built-in role")
            if await self.role_repo.get_by_name(new_name) is not None:
                raise ValidationError("Role name already exists")
            role.name = new_name
        if "description" in changes:
            role.description = changes["description"]
        if changes.get("permissions") is not None:
            role.permissions = changes["permissions"]

        role = await self.role_repo.update(role)
        await self.session.commit()

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.ROLE_UPDATED,
            details={
                "role_id": role.id,
                "before": before,
                "after": {
                    "name": role.name,
                    "description": role.description,
                    "permissions": list(role.permissions),
                },
            },
            context=context,
        )
        return role

    async def delete_role(
        self,
        role_id: str,
        actor: User,
        context: RequestContext,
    ) -> None:
        role = await self.get_role(role_id)

        if role.name == RoleName.SUPER_ADMIN.value:
            raise ValidationError("The SuperAdmin role cannot be deleted")

        if await self.role_repo.count_users(role.id) > 0:
            raise ValidationError("Cannot delete role that is in use")

        details = {"role_id": role.id, "role_name": role.name}
        await self.role_repo.delete(role)
        await self.session.commit()
        logger.info("Role deleted id=%s name=%s by=%s", role_id, details["role_name"], actor.id)

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.ROLE_DELETED,
            details=details,
            context=context,
        )


async def seed_roles(session: AsyncSession) -> list[Role]:
    """Upsert every built-in role by its stable id and commit."""
    repo = RoleRepository(session)
    seeded = [await repo.upsert_definition(definition) for definition in ROLES.values()]
    await session.commit()
    logger.info("Seeded %d roles", len(seeded))
    return seeded
