import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pulse.domain.enums import UserRole
from pulse.infra.db.models import User
from pulse.infra.db.repositories import UserRepository
from pulse.services.errors import UserDeletionForbiddenError, UserNotFoundError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UserPage:
    items: list[User]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


class UserService:
    def __init__(self, session: AsyncSession, users: UserRepository | None = None) -> None:
        self.session = session
        self.users = users or UserRepository(session)

    async def get_public_profile(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None or not user.is_active or user.is_deleted:
            raise UserNotFoundError(user_id)
        return user

    async def update_profile(
        self,
        user_id: UUID,
        name: str | None = None,
        picture: str | None = None,
    ) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError(user_id)

        if name is not None:
            cleaned_name = name.strip()
            if not cleaned_name:
                raise ValueError("Name cannot be empty.")
            user.name = cleaned_name
        if picture is not None:
            user.picture = picture.strip() or None

        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        active_only: bool = False,
        exclude_id: UUID | None = None,
    ) -> UserPage:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        items, total = await self.users.list_live(
            offset=(page - 1) * limit,
            limit=limit,
            active_only=active_only,
            exclude_id=exclude_id,
        )
        return UserPage(items=items, total=total, page=page, limit=limit)

    async def delete_user(self, target_id: UUID, requester: User) -> User:
        """Soft-delete an account. Admins may remove users only; superadmins anyone but peers."""
        target = await self.users.get_by_id(target_id)
        if target is None or target.is_deleted:
            raise UserNotFoundError(target_id)
        if target.id == requester.id:
            raise UserDeletionForbiddenError("You cannot delete your own account")

        if requester.role == UserRole.ADMIN and target.role != UserRole.USER:
            raise UserDeletionForbiddenError("Admins can only delete regular users")
        if requester.role == UserRole.SUPERADMIN and target.role == UserRole.SUPERADMIN:
            raise UserDeletionForbiddenError("Superadmins cannot delete other superadmins")
        if requester.role == UserRole.USER:
            raise UserDeletionForbiddenError("Insufficient permissions to delete this user")

        target.is_deleted = True
        target.is_active = False
        await self.users.store_refresh_token(target, None, None)
        await self.session.commit()
        logger.info("Account %s deleted by %s", target.id, requester.id)
        return target
