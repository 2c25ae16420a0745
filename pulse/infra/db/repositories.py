from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pulse.domain.enums import UserRole
from pulse.infra.db.models import Comment, Post, User


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt: Select[tuple[User]] = (
            select(User).where(func.lower(User.email) == email.strip().lower()).limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(
        self,
        email: str,
        password_hash: str,
        name: str | None = None,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
        is_verified: bool = True,
    ) -> User:
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            name=name,
            role=role,
            is_active=is_active,
            is_verified=is_verified,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def mark_logged_in(self, user: User) -> None:
        user.last_login = datetime.now(UTC)
        await self.session.flush()

    async def store_refresh_token(
        self, user: User, token_hash: str | None, expires_at: datetime | None
    ) -> None:
        user.refresh_token_hash = token_hash
        user.refresh_token_expires_at = expires_at
        await self.session.flush()

    async def list_live(
        self,
        offset: int,
        limit: int,
        active_only: bool = False,
        exclude_id: UUID | None = None,
    ) -> tuple[list[User], int]:
        conditions = [User.is_deleted.is_(False)]
        if active_only:
            conditions.append(User.is_active.is_(True))
        if exclude_id is not None:
            conditions.append(User.id != exclude_id)

        stmt: Select[tuple[User]] = (
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt: Select[tuple[int]] = select(func.count(User.id)).where(*conditions)

        result = await self.session.execute(stmt)
        total = await self.session.execute(count_stmt)
        return list(result.scalars().all()), int(total.scalar_one() or 0)


class PostRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, post_id: UUID) -> Post | None:
        return await self.session.get(Post, post_id)

    async def get_live_by_id(self, post_id: UUID) -> Post | None:
        post = await self.get_by_id(post_id)
        if post is None or post.is_deleted:
            return None
        return post

    async def create(
        self,
        author_id: UUID,
        content: str,
        media: list[str],
        media_type: list[str],
    ) -> Post:
        post = Post(
            author_id=author_id,
            content=content,
            media=media,
            media_type=media_type,
        )
        self.session.add(post)
        await self.session.flush()
        await self.session.refresh(post)
        return post

    async def list_live(
        self,
        offset: int,
        limit: int,
        search: str | None = None,
        author_id: UUID | None = None,
    ) -> tuple[list[Post], int]:
        conditions = [Post.is_deleted.is_(False)]
        if search:
            conditions.append(Post.content.ilike(f"%{search.strip()}%"))
        if author_id is not None:
            conditions.append(Post.author_id == author_id)

        stmt: Select[tuple[Post]] = (
            select(Post)
            .where(*conditions)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt: Select[tuple[int]] = select(func.count(Post.id)).where(*conditions)

        result = await self.session.execute(stmt)
        total = await self.session.execute(count_stmt)
        return list(result.scalars().all()), int(total.scalar_one() or 0)

    async def touch(self, post: Post) -> None:
        post.updated_at = datetime.now(UTC)
        await self.session.flush()


class CommentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, comment_id: UUID) -> Comment | None:
        return await self.session.get(Comment, comment_id)

    async def create(self, post_id: UUID, author_id: UUID, content: str) -> Comment:
        comment = Comment(post_id=post_id, author_id=author_id, content=content)
        self.session.add(comment)
        await self.session.flush()
        await self.session.refresh(comment)
        return comment

    async def list_live_by_post(
        self, post_id: UUID, offset: int, limit: int
    ) -> tuple[list[Comment], int]:
        conditions = [Comment.post_id == post_id, Comment.is_deleted.is_(False)]
        stmt: Select[tuple[Comment]] = (
            select(Comment)
            .where(*conditions)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt: Select[tuple[int]] = select(func.count(Comment.id)).where(*conditions)

        result = await self.session.execute(stmt)
        total = await self.session.execute(count_stmt)
        return list(result.scalars().all()), int(total.scalar_one() or 0)

    async def list_live_by_author(
        self, author_id: UUID, offset: int, limit: int
    ) -> tuple[list[Comment], int]:
        conditions = [Comment.author_id == author_id, Comment.is_deleted.is_(False)]
        stmt: Select[tuple[Comment]] = (
            select(Comment)
            .where(*conditions)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt: Select[tuple[int]] = select(func.count(Comment.id)).where(*conditions)

        result = await self.session.execute(stmt)
        total = await self.session.execute(count_stmt)
        return list(result.scalars().all()), int(total.scalar_one() or 0)


class SessionAccountDirectory:
    """Account lookups for long-lived callers; opens a short session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, user_id: UUID) -> User | None:
        async with self._session_factory() as session:
            return await UserRepository(session).get_by_id(user_id)
