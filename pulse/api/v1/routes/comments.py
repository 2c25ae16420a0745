from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.api.dependencies import get_current_account, get_event_bus
from pulse.api.errors import raise_for_service_error
from pulse.core.db import get_db_session
from pulse.infra.db.models import User
from pulse.infra.realtime.publisher import DomainEventBus
from pulse.schemas.comment import (
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)
from pulse.services.comment_service import CommentPage, CommentService
from pulse.services.errors import (
    CommentNotFoundError,
    CommentOwnershipError,
    PostNotFoundError,
)

router = APIRouter()


async def get_comment_service(
    session: AsyncSession = Depends(get_db_session),
    events: DomainEventBus = Depends(get_event_bus),
) -> CommentService:
    return CommentService(session=session, events=events)


def _to_list_response(result: CommentPage) -> CommentListResponse:
    return CommentListResponse(
        items=[CommentResponse.model_validate(comment) for comment in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    payload: CreateCommentRequest,
    service: CommentService = Depends(get_comment_service),
    account: User = Depends(get_current_account),
) -> CommentResponse:
    try:
        result = await service.create_comment(
            author_id=account.id,
            post_id=payload.post_id,
            content=payload.content,
        )
    except (PostNotFoundError, ValueError) as exc:
        raise_for_service_error(exc)
    return CommentResponse.model_validate(result.comment)


@router.get("/post/{post_id}", response_model=CommentListResponse)
async def list_post_comments(
    post_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    try:
        result = await service.list_comments(post_id, page=page, limit=limit)
    except PostNotFoundError as exc:
        raise_for_service_error(exc)
    return _to_list_response(result)


@router.get("/user/{user_id}", response_model=CommentListResponse)
async def list_user_comments(
    user_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: CommentService = Depends(get_comment_service),
) -> CommentListResponse:
    result = await service.list_user_comments(user_id, page=page, limit=limit)
    return _to_list_response(result)


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    comment_id: UUID,
    service: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    try:
        comment = await service.get_comment(comment_id)
    except CommentNotFoundError as exc:
        raise_for_service_error(exc)
    return CommentResponse.model_validate(comment)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: UUID,
    payload: UpdateCommentRequest,
    service: CommentService = Depends(get_comment_service),
    account: User = Depends(get_current_account),
) -> CommentResponse:
    try:
        comment = await service.update_comment(comment_id, account.id, payload.content)
    except (CommentNotFoundError, CommentOwnershipError, ValueError) as exc:
        raise_for_service_error(exc)
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: UUID,
    service: CommentService = Depends(get_comment_service),
    account: User = Depends(get_current_account),
) -> None:
    try:
        await service.delete_comment(comment_id, account.id)
    except (CommentNotFoundError, CommentOwnershipError) as exc:
        raise_for_service_error(exc)
