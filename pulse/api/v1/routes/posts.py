from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.api.dependencies import get_current_account, get_event_bus
from pulse.api.errors import raise_for_service_error
from pulse.core.db import get_db_session
from pulse.infra.db.models import User
from pulse.infra.realtime.publisher import DomainEventBus
from pulse.schemas.post import (
    CreatePostRequest,
    PostLikeResponse,
    PostListResponse,
    PostResponse,
    UpdatePostRequest,
)
from pulse.services.errors import PostNotFoundError, PostOwnershipError
from pulse.services.post_service import PostPage, PostService

router = APIRouter()


async def get_post_service(
    session: AsyncSession = Depends(get_db_session),
    events: DomainEventBus = Depends(get_event_bus),
) -> PostService:
    return PostService(session=session, events=events)


def _to_list_response(result: PostPage) -> PostListResponse:
    return PostListResponse(
        items=[PostResponse.model_validate(post) for post in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: CreatePostRequest,
    service: PostService = Depends(get_post_service),
    account: User = Depends(get_current_account),
) -> PostResponse:
    try:
        result = await service.create_post(
            author_id=account.id,
            content=payload.content,
            media=payload.media,
            media_type=payload.media_type,
        )
    except ValueError as exc:
        raise_for_service_error(exc)
    return PostResponse.model_validate(result.post)


@router.get("", response_model=PostListResponse)
async def list_posts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str | None = Query(default=None, max_length=100),
    author: UUID | None = Query(default=None),
    service: PostService = Depends(get_post_service),
) -> PostListResponse:
    result = await service.list_posts(page=page, limit=limit, search=search, author_id=author)
    return _to_list_response(result)


@router.get("/user/{user_id}", response_model=PostListResponse)
async def list_user_posts(
    user_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: PostService = Depends(get_post_service),
) -> PostListResponse:
    result = await service.list_posts(page=page, limit=limit, author_id=user_id)
    return _to_list_response(result)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID,
    service: PostService = Depends(get_post_service),
) -> PostResponse:
    try:
        post = await service.get_post(post_id)
    except PostNotFoundError as exc:
        raise_for_service_error(exc)
    return PostResponse.model_validate(post)


@router.put("/{post_id}", response_model=PostResponse)
@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    payload: UpdatePostRequest,
    service: PostService = Depends(get_post_service),
    account: User = Depends(get_current_account),
) -> PostResponse:
    try:
        post = await service.update_post(post_id, account.id, payload.content)
    except (PostNotFoundError, PostOwnershipError, ValueError) as exc:
        raise_for_service_error(exc)
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    service: PostService = Depends(get_post_service),
    account: User = Depends(get_current_account),
) -> None:
    try:
        await service.delete_post(post_id, account.id)
    except (PostNotFoundError, PostOwnershipError) as exc:
        raise_for_service_error(exc)


@router.post("/{post_id}/like", response_model=PostLikeResponse)
async def like_post(
    post_id: UUID,
    service: PostService = Depends(get_post_service),
    account: User = Depends(get_current_account),
) -> PostLikeResponse:
    _ = account
    try:
        post = await service.like_post(post_id)
    except PostNotFoundError as exc:
        raise_for_service_error(exc)
    return PostLikeResponse.model_validate(post)
