from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.identity import Identity, IdentityProvider, JWTIdentityProvider
from .config import get_settings
from .database import get_session
from .errors import AuthError
from .models.user import User
from .services.audit import ActivityRecorder, RequestContext
from .services.users import UserProvisioningService
from .storage import BlobStore, get_blob_store


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProvider:
    config = get_settings()
    return JWTIdentityProvider(
        key=config.identity_jwt_key or "",
        algorithm=config.identity_jwt_algorithm,
        issuer=config.identity_jwt_issuer,
        audience=config.identity_jwt_audience,
    )


def get_storage() -> BlobStore:
    return get_blob_store()


def get_activity_recorder() -> ActivityRecorder:
    return ActivityRecorder()


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_request(request)


async def get_current_identity(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    identity = await provider.resolve(request)
    if identity is None:
        raise AuthError()
    return identity


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await UserProvisioningService(db).get_or_create(identity)
