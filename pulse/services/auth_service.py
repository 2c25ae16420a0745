import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from pulse.core.config import Settings, get_settings
from pulse.core.rate_limit import InMemoryRateLimiter, RateLimitRule
from pulse.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    fingerprint_token,
    hash_password,
    verify_password,
)
from pulse.domain.enums import UserRole
from pulse.infra.db.models import User
from pulse.infra.db.repositories import UserRepository
from pulse.services.errors import (
    AuthenticationError,
    DuplicateAccountError,
    LoginThrottledError,
)

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN_MESSAGE = "Invalid or expired refresh token"


@dataclass(slots=True)
class LoginResult:
    access_token: str
    token_type: str
    expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
    user: User


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        users: UserRepository | None = None,
        limiter: InMemoryRateLimiter | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.users = users or UserRepository(session)
        self.limiter = limiter or InMemoryRateLimiter()
        self.settings = settings or get_settings()

    async def register(self, name: str, email: str, password: str) -> User:
        normalized_email = email.strip().lower()
        if await self.users.get_by_email(normalized_email) is not None:
            raise DuplicateAccountError(normalized_email)

        # Email verification is not offered, so new accounts start active.
        user = await self.users.create(
            email=normalized_email,
            password_hash=hash_password(password),
            name=name.strip(),
            role=UserRole.USER,
            is_active=True,
            is_verified=True,
        )
        await self.session.commit()
        logger.info("Registered account %s", user.id)
        return user

    async def login(self, email: str, password: str) -> LoginResult:
        normalized_email = email.strip().lower()
        if not normalized_email:
            raise AuthenticationError()

        rule = RateLimitRule(
            limit=self.settings.login_rate_limit,
            window_seconds=self.settings.login_rate_window_seconds,
        )
        if not await self.limiter.allow(normalized_email, rule):
            logger.warning("Login throttled for %s", normalized_email)
            raise LoginThrottledError(normalized_email)

        user = await self.users.get_by_email(normalized_email)
        if user is None or user.is_deleted:
            raise AuthenticationError()
        if not user.is_active:
            raise AuthenticationError("Account is inactive")
        if not verify_password(password, user.password_hash):
            raise AuthenticationError()

        await self.users.mark_logged_in(user)
        result = await self._issue_session(user)
        await self.session.commit()
        await self.limiter.reset(normalized_email)
        logger.info("Account %s signed in", user.id)
        return result

    async def refresh(self, refresh_token: str | None) -> LoginResult:
        """Exchange a refresh token for a new token pair; the old one stops working."""
        if not refresh_token:
            raise AuthenticationError("Refresh token is required")
        try:
            user_id = decode_refresh_token(
                refresh_token,
                self.settings.refresh_secret or "",
                self.settings.jwt_algorithm,
            )
        except ValueError as exc:
            raise AuthenticationError(INVALID_REFRESH_TOKEN_MESSAGE) from exc

        user = await self.users.get_by_id(user_id)
        if user is None or user.is_deleted or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        expires_at = user.refresh_token_expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if (
            user.refresh_token_hash != fingerprint_token(refresh_token)
            or expires_at is None
            or expires_at < datetime.now(UTC)
        ):
            raise AuthenticationError(INVALID_REFRESH_TOKEN_MESSAGE)

        result = await self._issue_session(user)
        await self.session.commit()
        logger.info("Account %s refreshed its session", user.id)
        return result

    async def _issue_session(self, user: User) -> LoginResult:
        token, expires_at = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role.value,
            user_name=user.display_name,
            secret=self.settings.jwt_secret or "",
            ttl_minutes=self.settings.access_token_ttl_minutes,
            algorithm=self.settings.jwt_algorithm,
        )
        refresh_token, refresh_expires_at = create_refresh_token(
            user_id=user.id,
            secret=self.settings.refresh_secret or "",
            ttl_days=self.settings.refresh_token_ttl_days,
            algorithm=self.settings.jwt_algorithm,
        )
        await self.users.store_refresh_token(
            user, fingerprint_token(refresh_token), refresh_expires_at
        )
        return LoginResult(
            access_token=token,
            token_type="bearer",
            expires_at=expires_at,
            refresh_token=refresh_token,
            refresh_expires_at=refresh_expires_at,
            user=user,
        )
