from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.rbac import RoleDefinition
from ..models.role import Role
from ..models.user import User


class RoleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        permissions: list[str],
        description: str | None = None,
        role_id: str | None = None,
    ) -> Role:
        role = Role(
            name=name,
            description=description,
            permissions=permissions,
        )
        if role_id is not None:
            role.id = role_id
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_id(self, role_id: str) -> Role | None:
        return await self.session.get(Role, role_id)

    async def get_by_name(self, name: str) -> Role | None:
        result = await self.session.execute(
            select(Role).where(Role.name == name)
        )
        return result.scalar_one_or_none()

    async def list_with_user_counts(self) -> list[tuple[Role, int]]:
        user_count = (
            select(User.role_id, func.count(User.id).label("user_count"))
            .group_by(User.role_id)
            .subquery()
        )
        result = await self.session.execute(
            select(Role, func.coalesce(user_count.c.user_count, 0))
            .outerjoin(user_count, user_count.c.role_id == Role.id)
            .order_by(Role.created_at.desc())
        )
        return [(role, int(count)) for role, count in result.all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Role))
        return result.scalar() or 0

    async def count_users(self, role_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.role_id == role_id)
        )
        return result.scalar() or 0

    async def update(self, role: Role) -> Role:
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def delete(self, role: Role) -> None:
        await self.session.delete(role)
        await self.session.flush()

    async def upsert_definition(self, definition: RoleDefinition) -> Role:
        """Insert or overwrite a seeded role, matched by its stable id."""
        permissions = sorted(p.value for p in definition.permissions)
        role = await self.get_by_id(definition.id)
        if role is None:
            return await self.create(
                name=definition.name.value,
                permissions=permissions,
                description=definition.description,
                role_id=definition.id,
            )

        role.name = definition.name.value
        role.description = definition.description
        role.permissions = permissions
        return await self.update(role)
