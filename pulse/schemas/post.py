from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pulse.domain.enums import MediaType


class CreatePostRequest(BaseModel):
    content: str = Field(min_length=1, max_length=300)
    media: list[str] = Field(default_factory=list, max_length=4)
    media_type: list[MediaType] = Field(default_factory=list, max_length=4)


class UpdatePostRequest(BaseModel):
    content: str = Field(min_length=1, max_length=300)


class PostResponse(BaseModel):
    id: UUID
    content: str
    author_id: UUID
    likes_count: int
    comments_count: int
    media: list[str]
    media_type: list[MediaType]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostListResponse(BaseModel):
    items: list[PostResponse]
    total: int
    page: int
    limit: int
    pages: int


class PostLikeResponse(BaseModel):
    id: UUID
    likes_count: int

    model_config = ConfigDict(from_attributes=True)
