from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..auth import rbac


def _validate_permission_list(value: list[str]) -> list[str]:
    return rbac.normalize_permissions(value)


def _strip_role_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("name must not be blank")
    return value


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    permissions: list[str]

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _strip_role_name(value)

    @field_validator("permissions")
    @classmethod
    def check_permissions(cls, value: list[str]) -> list[str]:
        return _validate_permission_list(value)


class RoleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    permissions: list[str] | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _strip_role_name(value)

    @field_validator("permissions")
    @classmethod
    def check_permissions(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return _validate_permission_list(value)


class RoleResponse(BaseModel):
    id: str
    name: str
    description: str | None
    permissions: list[str]
    created_at: datetime
    updated_at: datetime
    user_count: int | None = None

    model_config = ConfigDict(from_attributes=True)


class RoleList(BaseModel):
    roles: list[RoleResponse]


class RoleDetail(BaseModel):
    success: bool = True
    role: RoleResponse
