from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.guard import resolve_owner_scope
from ...crud.activity_log import ActivityLogRepository
from ...errors import ValidationError
from ...models.activity_log import ActivityLog
from ...models.user import User
from ...schemas.activity_log import ActivityActor, ActivityLogList, ActivityLogResponse
from ...schemas.common import Pagination
from ...schemas.filters import ActivityLogFilter
from ..time_range import resolve_time_range


def to_activity_response(entry: ActivityLog) -> ActivityLogResponse:
    actor = None
    if entry.user is not None:
        actor = ActivityActor(
            first_name=entry.user.first_name,
            last_name=entry.user.last_name,
            email=entry.user.email,
            avatar_url=entry.user.avatar_url,
        )
    return ActivityLogResponse(
        id=entry.id,
        user_id=entry.user_id,
        action=entry.action,
        details=entry.details,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        created_at=entry.created_at,
        user=actor,
    )


class ActivityService:
    def __init__(self, session: AsyncSession):
        self.activity_repo = ActivityLogRepository(session)

    async def list_activity(
        self,
        filters: ActivityLogFilter,
        actor: User,
        now: datetime | None = None,
    ) -> ActivityLogList:
        """
        List activity newest first.

        Non-admin callers only ever see their own entries; the scope is fixed
        before search, action and date filters are applied on top of it.
        """
        user_id = resolve_owner_scope(actor, filters.user_id)
        try:
            from_date, to_date = resolve_time_range(
                filters.time_range,
                filters.date_from,
                filters.date_to,
                now=now,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        entries, total = await self.activity_repo.list_by_filters(
            user_id=user_id,
            search=filters.search,
            action_type=filters.action_keyword,
            from_date=from_date,
            to_date=to_date,
            limit=filters.limit,
            offset=filters.offset,
        )
        return ActivityLogList(
            activities=[to_activity_response(entry) for entry in entries],
            pagination=Pagination(total=total, limit=filters.limit, offset=filters.offset),
        )
