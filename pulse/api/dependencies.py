from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pulse.core.config import get_settings
from pulse.core.db import get_db_session
from pulse.core.rate_limit import InMemoryRateLimiter
from pulse.domain.enums import UserRole
from pulse.infra.db.models import User
from pulse.infra.db.repositories import UserRepository
from pulse.infra.realtime.gateway import RealtimeGateway
from pulse.infra.realtime.publisher import DomainEventBus, NoopDomainEventBus
from pulse.services.credentials import CredentialVerifier, get_credential_verifier
from pulse.services.errors import AuthenticationError

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_account(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
) -> User:
    token = request.cookies.get(settings.access_token_cookie_name)
    if not token and credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token is required",
        )

    try:
        account = await verifier.authenticate(token, UserRepository(session))
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    return account.user


def require_role(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    allowed = frozenset(roles)

    async def dependency(account: User = Depends(get_current_account)) -> User:
        if account.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return account

    return dependency


def get_event_bus(request: Request) -> DomainEventBus:
    return getattr(request.app.state, "event_bus", None) or NoopDomainEventBus()


def get_login_limiter(request: Request) -> InMemoryRateLimiter:
    limiter = getattr(request.app.state, "login_limiter", None)
    if limiter is None:
        limiter = InMemoryRateLimiter()
        request.app.state.login_limiter = limiter
    return limiter


def get_realtime_gateway(request: Request) -> RealtimeGateway:
    gateway = getattr(request.app.state, "realtime_gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Realtime gateway not initialized",
        )
    return gateway
