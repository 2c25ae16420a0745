from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateCommentRequest(BaseModel):
    post_id: UUID
    content: str = Field(min_length=1, max_length=500)


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    author_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentListResponse(BaseModel):
    items: list[CommentResponse]
    total: int
    page: int
    limit: int


class UpdateCommentRequest(BaseModel):
    content: str = Field(min_length=1, max_length=500)
