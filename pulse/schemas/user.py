from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pulse.domain.enums import UserRole


class UserResponse(BaseModel):
    id: UUID
    name: str | None
    email: str
    role: UserRole
    picture: str | None
    is_verified: bool
    is_active: bool
    last_login: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicUserResponse(BaseModel):
    id: UUID
    name: str | None
    picture: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    picture: str | None = Field(default=None, max_length=500)


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    limit: int
    pages: int


class ChatUserListResponse(BaseModel):
    items: list[PublicUserResponse]
    total: int
    page: int
    limit: int
    pages: int
