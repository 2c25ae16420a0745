from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.api.dependencies import (
    get_current_account,
    get_realtime_gateway,
    require_role,
)
from pulse.api.errors import raise_for_service_error
from pulse.core.db import get_db_session
from pulse.domain.enums import UserRole
from pulse.infra.db.models import User
from pulse.infra.realtime.gateway import RealtimeGateway
from pulse.schemas.realtime import OnlineUserResponse
from pulse.schemas.user import (
    ChatUserListResponse,
    PublicUserResponse,
    UpdateProfileRequest,
    UserListResponse,
    UserResponse,
)
from pulse.services.errors import UserDeletionForbiddenError, UserNotFoundError
from pulse.services.user_service import UserService

router = APIRouter()
require_admin = require_role(UserRole.ADMIN, UserRole.SUPERADMIN)


async def get_user_service(session: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(session=session)


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: UserService = Depends(get_user_service),
    admin: User = Depends(require_admin),
) -> UserListResponse:
    _ = admin
    result = await service.list_users(page=page, limit=limit)
    return UserListResponse(
        items=[UserResponse.model_validate(user) for user in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get("/me", response_model=UserResponse)
async def get_profile(account: User = Depends(get_current_account)) -> UserResponse:
    return UserResponse.model_validate(account)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: UpdateProfileRequest,
    service: UserService = Depends(get_user_service),
    account: User = Depends(get_current_account),
) -> UserResponse:
    try:
        user = await service.update_profile(
            account.id, name=payload.name, picture=payload.picture
        )
    except (UserNotFoundError, ValueError) as exc:
        raise_for_service_error(exc)
    return UserResponse.model_validate(user)


@router.get("/online", response_model=list[OnlineUserResponse])
async def list_online_users(
    account: User = Depends(get_current_account),
    gateway: RealtimeGateway = Depends(get_realtime_gateway),
) -> list[OnlineUserResponse]:
    _ = account
    return [
        OnlineUserResponse(
            user_id=entry.account_id,
            user_name=entry.display_name,
            user_email=entry.email,
        )
        for entry in gateway.presence.list()
    ]


@router.get("/chat-user", response_model=ChatUserListResponse)
async def list_chat_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: UserService = Depends(get_user_service),
    account: User = Depends(get_current_account),
) -> ChatUserListResponse:
    result = await service.list_users(
        page=page, limit=limit, active_only=True, exclude_id=account.id
    )
    return ChatUserListResponse(
        items=[PublicUserResponse.model_validate(user) for user in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get("/{user_id}", response_model=PublicUserResponse)
async def get_public_profile(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
    account: User = Depends(get_current_account),
) -> PublicUserResponse:
    _ = account
    try:
        user = await service.get_public_profile(user_id)
    except UserNotFoundError as exc:
        raise_for_service_error(exc)
    return PublicUserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
    admin: User = Depends(require_admin),
) -> None:
    try:
        await service.delete_user(user_id, admin)
    except (UserNotFoundError, UserDeletionForbiddenError) as exc:
        raise_for_service_error(exc)
