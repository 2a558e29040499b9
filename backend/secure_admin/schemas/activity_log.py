from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from .common import Pagination


class ActivityActor(BaseModel):
    first_name: str
    last_name: str
    email: str
    avatar_url: str | None = None


class ActivityLogResponse(BaseModel):
    id: UUID
    user_id: UUID | None
    action: str
    details: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime
    user: ActivityActor | None = None


class ActivityLogList(BaseModel):
    activities: list[ActivityLogResponse]
    pagination: Pagination
