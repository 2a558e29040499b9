from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RoleSummary(BaseModel):
    id: str
    name: str
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    avatar_url: str | None
    role: RoleSummary
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserListItem(UserResponse):
    file_count: int = 0
    activity_count: int = 0


class UserList(BaseModel):
    users: list[UserListItem]


class CurrentUserResponse(UserResponse):
    permissions: list[str]


class UserCreate(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    role_id: str = Field(..., min_length=1, max_length=64)


class UserRoleUpdate(BaseModel):
    role_id: str = Field(..., min_length=1, max_length=64)


class UserDetail(BaseModel):
    success: bool = True
    user: UserResponse


class CurrentUserDetail(BaseModel):
    user: CurrentUserResponse
