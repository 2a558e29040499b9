import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from ..models.activity_log import ActivityLog
from ..models.user import User

LIKE_ESCAPE = "/"


def contains_pattern(text: str) -> str:
    """Build an ILIKE pattern matching ``text`` literally anywhere in the value."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def build_activity_conditions(
    *,
    user_id: uuid.UUID | None = None,
    search: str | None = None,
    action_type: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> list[ColumnElement[bool]]:
    """
    Translate activity filters into WHERE conditions.

    The owner condition comes first; every other filter is ANDed onto it, so
    no combination of search/action/date parameters can widen the scope.
    """
    conditions: list[ColumnElement[bool]] = []
    if user_id is not None:
        conditions.append(ActivityLog.user_id == user_id)
    if search:
        pattern = contains_pattern(search)
        conditions.append(
            or_(
                ActivityLog.action.ilike(pattern, escape=LIKE_ESCAPE),
                ActivityLog.user_id.in_(
                    select(User.id).where(
                        or_(
                            User.first_name.ilike(pattern, escape=LIKE_ESCAPE),
                            User.last_name.ilike(pattern, escape=LIKE_ESCAPE),
                            User.email.ilike(pattern, escape=LIKE_ESCAPE),
                        )
                    )
                ),
            )
        )
    if action_type:
        conditions.append(ActivityLog.action.ilike(f"%{action_type}%"))
    if from_date is not None:
        conditions.append(ActivityLog.created_at >= from_date)
    if to_date is not None:
        conditions.append(ActivityLog.created_at < to_date)
    return conditions


class ActivityLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID | None,
        action: str,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(entry)
        await self.session.commit()
        return entry

    async def list_by_filters(
        self,
        *,
        user_id: uuid.UUID | None = None,
        search: str | None = None,
        action_type: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ActivityLog], int]:
        conditions = build_activity_conditions(
            user_id=user_id,
            search=search,
            action_type=action_type,
            from_date=from_date,
            to_date=to_date,
        )
        query = select(ActivityLog)
        if conditions:
            query = query.where(and_(*conditions))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar() or 0

        query = query.order_by(ActivityLog.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(query)
        return list(result.unique().scalars().all()), total

    async def count(
        self,
        user_id: uuid.UUID | None = None,
        since: datetime | None = None,
    ) -> int:
        query = select(func.count()).select_from(ActivityLog)
        if user_id is not None:
            query = query.where(ActivityLog.user_id == user_id)
        if since is not None:
            query = query.where(ActivityLog.created_at >= since)
        result = await self.session.execute(query)
        return result.scalar() or 0
