from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from pulse.domain.enums import UserRole
from pulse.services.errors import UserDeletionForbiddenError, UserNotFoundError
from pulse.services.user_service import UserService


class DummySession:
    def __init__(self) -> None:
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1

    async def refresh(self, _: object) -> None:
        return None


@dataclass(slots=True)
class FakeUser:
    id: UUID
    email: str
    name: str | None = None
    picture: str | None = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    is_deleted: bool = False
    refresh_token_hash: str | None = None
    refresh_token_expires_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[UUID, FakeUser] = {}

    def add(self, email: str, **kwargs: object) -> FakeUser:
        user = FakeUser(id=uuid4(), email=email, **kwargs)
        self.users[user.id] = user
        return user

    async def get_by_id(self, user_id: UUID) -> FakeUser | None:
        return self.users.get(user_id)

    async def list_live(
        self,
        offset: int,
        limit: int,
        active_only: bool = False,
        exclude_id: UUID | None = None,
    ) -> tuple[list[FakeUser], int]:
        items = [
            user
            for user in self.users.values()
            if not user.is_deleted
            and (not active_only or user.is_active)
            and user.id != exclude_id
        ]
        return items[offset : offset + limit], len(items)

    async def store_refresh_token(
        self, user: FakeUser, token_hash: str | None, expires_at: datetime | None
    ) -> None:
        user.refresh_token_hash = token_hash
        user.refresh_token_expires_at = expires_at


def _service() -> tuple[UserService, FakeUserRepository, DummySession]:
    session = DummySession()
    users = FakeUserRepository()
    return UserService(session=session, users=users), users, session


@pytest.mark.asyncio
async def test_update_profile_trims_name_and_clears_blank_picture() -> None:
    service, users, session = _service()
    asha = users.add("asha@pulse.local", name="Asha", picture="https://cdn/old.png")

    updated = await service.update_profile(asha.id, name="  Asha Verma ", picture="  ")

    assert updated.name == "Asha Verma"
    assert updated.picture is None
    assert session.commits == 1


@pytest.mark.asyncio
async def test_update_profile_leaves_omitted_fields_alone() -> None:
    service, users, _ = _service()
    asha = users.add("asha@pulse.local", name="Asha", picture="https://cdn/a.png")

    updated = await service.update_profile(asha.id, picture="https://cdn/b.png")

    assert updated.name == "Asha"
    assert updated.picture == "https://cdn/b.png"


@pytest.mark.asyncio
async def test_update_profile_rejects_blank_name_and_deleted_account() -> None:
    service, users, session = _service()
    asha = users.add("asha@pulse.local", name="Asha")
    gone = users.add("gone@pulse.local", is_deleted=True)

    with pytest.raises(ValueError, match="Name cannot be empty"):
        await service.update_profile(asha.id, name="   ")
    with pytest.raises(UserNotFoundError):
        await service.update_profile(gone.id, name="Back")
    assert session.commits == 0


@pytest.mark.asyncio
async def test_list_users_filters_and_paginates() -> None:
    service, users, _ = _service()
    me = users.add("me@pulse.local")
    users.add("idle@pulse.local", is_active=False)
    users.add("gone@pulse.local", is_deleted=True)
    for index in range(3):
        users.add(f"user{index}@pulse.local")

    everyone = await service.list_users(page=1, limit=10)
    chat = await service.list_users(page=1, limit=2, active_only=True, exclude_id=me.id)

    assert everyone.total == 5
    assert chat.total == 3
    assert len(chat.items) == 2
    assert chat.pages == 2
    assert all(user.id != me.id and user.is_active for user in chat.items)


@pytest.mark.asyncio
async def test_list_users_clamps_limit() -> None:
    service, _, _ = _service()

    page = await service.list_users(page=0, limit=1000)

    assert page.page == 1
    assert page.limit == 100


@pytest.mark.asyncio
async def test_admin_deletes_regular_user() -> None:
    service, users, session = _service()
    admin = users.add("admin@pulse.local", role=UserRole.ADMIN)
    target = users.add(
        "asha@pulse.local", refresh_token_hash="abc", refresh_token_expires_at=datetime.now(UTC)
    )

    deleted = await service.delete_user(target.id, admin)

    assert deleted.is_deleted
    assert not deleted.is_active
    assert deleted.refresh_token_hash is None
    assert session.commits == 1


@pytest.mark.asyncio
async def test_admin_cannot_delete_another_admin() -> None:
    service, users, _ = _service()
    admin = users.add("admin@pulse.local", role=UserRole.ADMIN)
    other = users.add("other@pulse.local", role=UserRole.ADMIN)

    with pytest.raises(UserDeletionForbiddenError, match="Admins can only delete regular users"):
        await service.delete_user(other.id, admin)
    assert not other.is_deleted


@pytest.mark.asyncio
async def test_superadmin_rules() -> None:
    service, users, _ = _service()
    root = users.add("root@pulse.local", role=UserRole.SUPERADMIN)
    peer = users.add("peer@pulse.local", role=UserRole.SUPERADMIN)
    admin = users.add("admin@pulse.local", role=UserRole.ADMIN)

    with pytest.raises(UserDeletionForbiddenError, match="other superadmins"):
        await service.delete_user(peer.id, root)
    with pytest.raises(UserDeletionForbiddenError, match="your own account"):
        await service.delete_user(root.id, root)

    deleted = await service.delete_user(admin.id, root)
    assert deleted.is_deleted


@pytest.mark.asyncio
async def test_regular_user_cannot_delete_and_missing_target_is_not_found() -> None:
    service, users, _ = _service()
    asha = users.add("asha@pulse.local")
    rohan = users.add("rohan@pulse.local")
    admin = users.add("admin@pulse.local", role=UserRole.ADMIN)

    with pytest.raises(UserDeletionForbiddenError, match="Insufficient permissions"):
        await service.delete_user(rohan.id, asha)
    with pytest.raises(UserNotFoundError):
        await service.delete_user(uuid4(), admin)
