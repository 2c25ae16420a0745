from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol
from uuid import UUID

from pulse.core.config import get_settings
from pulse.core.security import AccessTokenClaims, decode_access_token
from pulse.infra.db.models import User
from pulse.services.errors import AuthenticationError

INVALID_TOKEN_MESSAGE = "Invalid or expired token"
INACTIVE_ACCOUNT_MESSAGE = "User not found or inactive"


class AccountLookup(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...


@dataclass(frozen=True, slots=True)
class AuthenticatedAccount:
    claims: AccessTokenClaims
    user: User


class CredentialVerifier:
    """Turns a bearer token into a live account.

    Shared by the REST dependency and the realtime handshake so both apply
    the same rules: a valid signature and expiry, and an account that still
    exists, is active and is not deleted.
    """

    def __init__(self, secret: str | None, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("JWT_SECRET is not defined in environment variables.")
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, token: str) -> AccessTokenClaims | None:
        if not token:
            return None
        try:
            return decode_access_token(token, self._secret, self._algorithm)
        except ValueError:
            return None

    async def authenticate(
        self, token: str, accounts: AccountLookup
    ) -> AuthenticatedAccount:
        claims = self.verify(token)
        if claims is None:
            raise AuthenticationError(INVALID_TOKEN_MESSAGE)

        user = await accounts.get_by_id(claims.user_id)
        if user is None or not user.is_active or user.is_deleted:
            raise AuthenticationError(INACTIVE_ACCOUNT_MESSAGE)

        return AuthenticatedAccount(claims=claims, user=user)


@lru_cache
def get_credential_verifier() -> CredentialVerifier:
    settings = get_settings()
    return CredentialVerifier(settings.jwt_secret, settings.jwt_algorithm)
