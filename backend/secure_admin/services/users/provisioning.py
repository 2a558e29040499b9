import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.identity import Identity
from ...auth.rbac import DEFAULT_ROLE
from ...crud.role import RoleRepository
from ...crud.user import UserRepository
from ...errors import ConfigurationError, InternalError
from ...models.user import User

logger = logging.getLogger(__name__)


class UserProvisioningService:
    """Map an external identity onto a local user, creating it on first sight.

    Creation is guarded by the unique constraint on ``users.external_id``
    rather than by locking: when two first requests race, the loser's insert
    fails, is rolled back, and the winner's row is read back instead.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.role_repo = RoleRepository(session)

    async def get_or_create(self, identity: Identity) -> User:
        user = await self.user_repo.get_by_external_id(identity.external_id)
        if user is not None:
            return user

        default_role = await self.role_repo.get_by_name(DEFAULT_ROLE.value)
        if default_role is None:
            logger.error(
                "Default role %r is missing; run the role seed", DEFAULT_ROLE.value
            )
            raise ConfigurationError("Default role not found")

        try:
            user = await self.user_repo.create(
                external_id=identity.external_id,
                email=identity.email,
                first_name=identity.first_name or "",
                last_name=identity.last_name or "",
                avatar_url=identity.avatar_url,
                role_id=default_role.id,
            )
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.info(
                "Concurrent provisioning for external_id=%s; using existing row",
                identity.external_id,
            )
            user = await self.user_repo.get_by_external_id(identity.external_id)
            if user is None:
                raise InternalError("User provisioning failed") from None
            return user

        logger.info(
            "Provisioned user id=%s external_id=%s role=%s",
            user.id,
            identity.external_id,
            default_role.name,
        )
        return user
