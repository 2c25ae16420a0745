from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.api.dependencies import get_login_limiter
from pulse.api.errors import raise_for_service_error
from pulse.core.config import get_settings
from pulse.core.db import get_db_session
from pulse.core.rate_limit import InMemoryRateLimiter
from pulse.schemas.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    SessionResponse,
)
from pulse.schemas.common import ApiMessage
from pulse.schemas.user import UserResponse
from pulse.services.auth_service import AuthService, LoginResult
from pulse.services.errors import (
    AuthenticationError,
    DuplicateAccountError,
    LoginThrottledError,
)

router = APIRouter()
settings = get_settings()


async def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    limiter: InMemoryRateLimiter = Depends(get_login_limiter),
) -> AuthService:
    return AuthService(session=session, limiter=limiter)


def _set_session_cookies(response: Response, result: LoginResult) -> SessionResponse:
    response.set_cookie(
        key=settings.access_token_cookie_name,
        value=result.access_token,
        max_age=settings.access_token_ttl_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    response.set_cookie(
        key=settings.refresh_token_cookie_name,
        value=result.refresh_token,
        max_age=settings.refresh_token_ttl_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return SessionResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_at=result.expires_at,
        refresh_token=result.refresh_token,
        refresh_expires_at=result.refresh_expires_at,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    try:
        user = await service.register(
            name=payload.name,
            email=payload.email,
            password=payload.password,
        )
    except DuplicateAccountError as exc:
        raise_for_service_error(exc)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    try:
        result = await service.login(email=payload.email, password=payload.password)
    except (AuthenticationError, LoginThrottledError) as exc:
        raise_for_service_error(exc)
    return _set_session_cookies(response, result)


@router.post("/refresh-token", response_model=SessionResponse)
async def refresh_token(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = None,
    service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    token = payload.refresh_token if payload is not None else None
    token = token or request.cookies.get(settings.refresh_token_cookie_name)
    try:
        result = await service.refresh(token)
    except AuthenticationError as exc:
        raise_for_service_error(exc)
    return _set_session_cookies(response, result)


@router.post("/logout", response_model=ApiMessage)
async def logout(response: Response) -> ApiMessage:
    for cookie_name in (settings.access_token_cookie_name, settings.refresh_token_cookie_name):
        response.delete_cookie(
            key=cookie_name,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
        )
    return ApiMessage(detail="Logged out")
