from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pulse.infra.db.models import Comment
from pulse.infra.db.repositories import CommentRepository, PostRepository
from pulse.infra.realtime.events import DomainEvent
from pulse.infra.realtime.publisher import (
    DomainEventBus,
    NoopDomainEventBus,
    PublishResult,
)
from pulse.services.errors import (
    CommentNotFoundError,
    CommentOwnershipError,
    PostNotFoundError,
)

MAX_COMMENT_LENGTH = 500


@dataclass(slots=True)
class CommentPage:
    items: list[Comment]
    total: int
    page: int
    limit: int


@dataclass(slots=True)
class CommentCreated:
    comment: Comment
    notification: PublishResult


class CommentService:
    def __init__(
        self,
        session: AsyncSession,
        comments: CommentRepository | None = None,
        posts: PostRepository | None = None,
        events: DomainEventBus | None = None,
    ) -> None:
        self.session = session
        self.comments = comments or CommentRepository(session)
        self.posts = posts or PostRepository(session)
        self.events = events or NoopDomainEventBus()

    async def create_comment(
        self,
        author_id: UUID,
        post_id: UUID,
        content: str,
    ) -> CommentCreated:
        cleaned_content = self._clean_content(content)

        post = await self.posts.get_live_by_id(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        comment = await self.comments.create(
            post_id=post.id,
            author_id=author_id,
            content=cleaned_content,
        )
        post.comments_count += 1
        await self.posts.touch(post)
        await self.session.commit()
        await self.session.refresh(comment)

        notification = await self.events.publish(
            DomainEvent.COMMENT_CREATED,
            self._comment_created_payload(comment),
        )
        return CommentCreated(comment=comment, notification=notification)

    async def get_comment(self, comment_id: UUID) -> Comment:
        comment = await self.comments.get_by_id(comment_id)
        if comment is None or comment.is_deleted:
            raise CommentNotFoundError(comment_id)
        return comment

    async def list_comments(
        self,
        post_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> CommentPage:
        post = await self.posts.get_live_by_id(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        page, limit = self._clamp(page, limit)
        items, total = await self.comments.list_live_by_post(
            post_id=post.id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return CommentPage(items=items, total=total, page=page, limit=limit)

    async def list_user_comments(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> CommentPage:
        page, limit = self._clamp(page, limit)
        items, total = await self.comments.list_live_by_author(
            author_id=user_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return CommentPage(items=items, total=total, page=page, limit=limit)

    async def update_comment(self, comment_id: UUID, user_id: UUID, content: str) -> Comment:
        cleaned_content = self._clean_content(content)
        comment = await self._get_owned_comment(comment_id, user_id)
        comment.content = cleaned_content
        await self.session.commit()
        await self.session.refresh(comment)
        return comment

    async def delete_comment(self, comment_id: UUID, user_id: UUID) -> Comment:
        comment = await self._get_owned_comment(comment_id, user_id)
        comment.is_deleted = True
        post = await self.posts.get_by_id(comment.post_id)
        if post is not None and post.comments_count > 0:
            post.comments_count -= 1
            await self.posts.touch(post)
        await self.session.commit()
        return comment

    async def _get_owned_comment(self, comment_id: UUID, user_id: UUID) -> Comment:
        comment = await self.get_comment(comment_id)
        if comment.author_id != user_id:
            raise CommentOwnershipError(comment_id, user_id)
        return comment

    @staticmethod
    def _clamp(page: int, limit: int) -> tuple[int, int]:
        return max(page, 1), min(max(limit, 1), 100)

    @staticmethod
    def _clean_content(content: str) -> str:
        cleaned = content.strip()
        if not cleaned:
            raise ValueError("Comment content is required.")
        if len(cleaned) > MAX_COMMENT_LENGTH:
            raise ValueError(f"Comment content cannot exceed {MAX_COMMENT_LENGTH} characters.")
        return cleaned

    @staticmethod
    def _comment_created_payload(comment: Comment) -> dict[str, Any]:
        return {
            "commentId": str(comment.id),
            "postId": str(comment.post_id),
            "authorId": str(comment.author_id),
            "content": comment.content,
        }
