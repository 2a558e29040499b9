"""
Activity Recorder - append-only activity log for state-changing actions.

Entries are written in their own session after the primary action has been
committed, so a failed write can neither roll the action back nor surface to
the caller. Failures are logged with traceback and swallowed.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncContextManager

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from ...crud.activity_log import ActivityLogRepository
from ...models.user import User

logger = logging.getLogger("secure_admin.audit")

UNKNOWN = "unknown"

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class ActivityAction(str, Enum):
    FILE_UPLOADED = "uploaded a file"
    FILE_DOWNLOADED = "downloaded a file"
    FILE_DELETED = "deleted a file"
    USER_CREATED = "created a user"
    USER_UPDATED = "updated a user"
    USER_DELETED = "deleted a user"
    ROLE_CREATED = "created a role"
    ROLE_UPDATED = "updated a role"
    ROLE_DELETED = "deleted a role"


@dataclass(frozen=True)
class RequestContext:
    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        forwarded = request.headers.get("x-forwarded-for", "")
        ip_address = forwarded.split(",")[0].strip()
        if not ip_address and request.client is not None:
            ip_address = request.client.host
        user_agent = request.headers.get("user-agent", "").strip()
        return cls(
            ip_address=ip_address or UNKNOWN,
            user_agent=user_agent or UNKNOWN,
        )


def _default_session_factory() -> AsyncContextManager[AsyncSession]:
    # Imported lazily so the recorder can be built without a configured engine
    from ...database import AsyncSessionLocal

    return AsyncSessionLocal()


class ActivityRecorder:
    """Best-effort writer of ActivityLog entries."""

    def __init__(self, session_factory: SessionFactory | None = None):
        self.session_factory = session_factory or _default_session_factory

    async def record(
        self,
        *,
        actor: User,
        action: ActivityAction | str,
        details: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> bool:
        """
        Append one activity entry.

        Never raises. Returns True when the entry was committed.
        """
        label = action.value if isinstance(action, ActivityAction) else action
        context = context or RequestContext()
        try:
            async with self.session_factory() as session:
                repo = ActivityLogRepository(session)
                await repo.create(
                    user_id=actor.id,
                    action=label,
                    details=details or {},
                    ip_address=context.ip_address,
                    user_agent=context.user_agent,
                )
            return True
        except Exception:
            logger.error(
                "Activity logging failed for action=%r actor=%s",
                label,
                getattr(actor, "id", None),
                exc_info=True,
            )
            return False
