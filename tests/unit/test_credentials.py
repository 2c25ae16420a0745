from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest

from pulse.core.security import create_access_token
from pulse.domain.enums import UserRole
from pulse.services.credentials import (
    INACTIVE_ACCOUNT_MESSAGE,
    INVALID_TOKEN_MESSAGE,
    CredentialVerifier,
)
from pulse.services.errors import AuthenticationError

SECRET = "pulse-test-secret-with-at-least-32-bytes"


@dataclass(slots=True)
class FakeUser:
    id: UUID
    email: str
    name: str | None = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    is_deleted: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.email


class FakeAccountDirectory:
    def __init__(self, *users: FakeUser) -> None:
        self.users = {user.id: user for user in users}

    async def get_by_id(self, user_id: UUID) -> FakeUser | None:
        return self.users.get(user_id)


def _token_for(user: FakeUser, secret: str = SECRET) -> str:
    token, _ = create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        user_name=user.display_name,
        secret=secret,
        ttl_minutes=5,
    )
    return token


def test_missing_secret_is_a_configuration_error() -> None:
    with pytest.raises(ValueError):
        CredentialVerifier(None)
    with pytest.raises(ValueError):
        CredentialVerifier("")


def test_verify_returns_none_for_garbage() -> None:
    verifier = CredentialVerifier(SECRET)

    assert verifier.verify("") is None
    assert verifier.verify("not.a.token") is None


@pytest.mark.asyncio
async def test_authenticate_returns_live_account() -> None:
    user = FakeUser(id=uuid4(), email="asha@pulse.local", name="Asha")
    verifier = CredentialVerifier(SECRET)

    account = await verifier.authenticate(_token_for(user), FakeAccountDirectory(user))

    assert account.user is user
    assert account.claims.user_id == user.id
    assert account.claims.user_name == "Asha"


@pytest.mark.asyncio
async def test_token_from_other_secret_is_rejected() -> None:
    user = FakeUser(id=uuid4(), email="asha@pulse.local")
    verifier = CredentialVerifier(SECRET)
    token = _token_for(user, secret="another-secret-that-is-also-32-bytes-long")

    with pytest.raises(AuthenticationError, match=INVALID_TOKEN_MESSAGE):
        await verifier.authenticate(token, FakeAccountDirectory(user))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "flags",
    [{"is_active": False}, {"is_deleted": True}],
)
async def test_valid_token_for_unusable_account_is_rejected(flags: dict) -> None:
    user = FakeUser(id=uuid4(), email="kiran@pulse.local", **flags)
    verifier = CredentialVerifier(SECRET)

    with pytest.raises(AuthenticationError, match=INACTIVE_ACCOUNT_MESSAGE):
        await verifier.authenticate(_token_for(user), FakeAccountDirectory(user))


@pytest.mark.asyncio
async def test_valid_token_for_unknown_account_is_rejected() -> None:
    user = FakeUser(id=uuid4(), email="ghost@pulse.local")
    verifier = CredentialVerifier(SECRET)

    with pytest.raises(AuthenticationError, match=INACTIVE_ACCOUNT_MESSAGE):
        await verifier.authenticate(_token_for(user), FakeAccountDirectory())
