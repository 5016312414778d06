"""Pydantic schemas for user representations and admin endpoints.

``UserOut`` is the allow-list of user fields ever sent to clients.
"""

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from infographic_api.schemas.base import CamelModel, normalize_email


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    phone: str | None
    gender: str
    photo: str
    role: str
    email_verified: bool
    created_at: datetime


class AdminUserOut(UserOut):
    active: bool = Field(validation_alias="is_active")


class AdminUpdateUserRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = None
    role: Literal["user", "admin"] | None = None
    active: bool | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return normalize_email(value) if value is not None else None


class AdminUserData(CamelModel):
    user: AdminUserOut


class AdminUserResponse(CamelModel):
    status: str = "success"
    data: AdminUserData


class UserListData(CamelModel):
    users: list[AdminUserOut]


class UserListResponse(CamelModel):
    status: str = "success"
    results: int
    data: UserListData


class MonthStat(CamelModel):
    month: int
    total: int


class StatsData(CamelModel):
    stats: list[MonthStat]


class StatsResponse(CamelModel):
    status: str = "success"
    data: StatsData
