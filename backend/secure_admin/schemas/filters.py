"""
Filter specifications for list endpoints.

Each list endpoint accepts one of these instead of an open-ended dict. The
owner scope is not part of the caller-controlled fields that reach the
repository: the request guard resolves it from the caller's role first.
"""
from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

ACTION_TYPES: tuple[str, ...] = ("uploaded", "downloaded", "deleted", "created", "updated")

ActionType = Literal["all", "uploaded", "downloaded", "deleted", "created", "updated"]
TimeRange = Literal["all", "today", "yesterday", "week", "month"]


class ActivityLogFilter(BaseModel):
    """Filters for the activity log list."""

    search: str | None = Field(default=None, max_length=200)
    action_type: ActionType | None = None
    time_range: TimeRange | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    user_id: UUID | None = None  # honoured for admin roles only

    # Pagination
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @field_validator("search")
    @classmethod
    def strip_search(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("date_from", "date_to")
    @classmethod
    def as_utc(cls, value: datetime | None) -> datetime | None:
        # Naive bounds are read as UTC so both sides stay comparable
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_date_order(self) -> "ActivityLogFilter":
        if self.date_from and self.date_to and self.date_from >= self.date_to:
            raise ValueError("date_from must be earlier than date_to")
        return self

    @property
    def action_keyword(self) -> str | None:
        if self.action_type is None or self.action_type == "all":
            return None
        return self.action_type


class FileUploadFilter(BaseModel):
    """Filters for the uploaded files list."""

    owner_id: UUID | None = None  # honoured for admin roles only
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
