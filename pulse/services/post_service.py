from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pulse.domain.enums import MediaType
from pulse.infra.db.models import Post
from pulse.infra.db.repositories import PostRepository
from pulse.infra.realtime.events import DomainEvent
from pulse.infra.realtime.publisher import (
    DomainEventBus,
    NoopDomainEventBus,
    PublishResult,
)
from pulse.services.errors import (
    MediaValidationError,
    PostNotFoundError,
    PostOwnershipError,
)

MAX_POST_LENGTH = 300
MAX_IMAGES_PER_POST = 3
MAX_VIDEOS_PER_POST = 1


@dataclass(slots=True)
class PostPage:
    items: list[Post]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


@dataclass(slots=True)
class PostCreated:
    post: Post
    notification: PublishResult


class PostService:
    def __init__(
        self,
        session: AsyncSession,
        posts: PostRepository | None = None,
        events: DomainEventBus | None = None,
    ) -> None:
        self.session = session
        self.posts = posts or PostRepository(session)
        self.events = events or NoopDomainEventBus()

    async def create_post(
        self,
        author_id: UUID,
        content: str,
        media: list[str] | None = None,
        media_type: list[MediaType] | None = None,
    ) -> PostCreated:
        cleaned_content = self._clean_content(content)
        media_urls = list(media or [])
        media_kinds = [MediaType(kind).value for kind in media_type or []]
        self._validate_media(media_urls, media_kinds)

        post = await self.posts.create(
            author_id=author_id,
            content=cleaned_content,
            media=media_urls,
            media_type=media_kinds,
        )
        await self.session.commit()
        await self.session.refresh(post)

        notification = await self.events.publish(
            DomainEvent.POST_CREATED,
            self._post_created_payload(post),
        )
        return PostCreated(post=post, notification=notification)

    async def list_posts(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        author_id: UUID | None = None,
    ) -> PostPage:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        items, total = await self.posts.list_live(
            offset=(page - 1) * limit,
            limit=limit,
            search=search,
            author_id=author_id,
        )
        return PostPage(items=items, total=total, page=page, limit=limit)

    async def get_post(self, post_id: UUID) -> Post:
        post = await self.posts.get_live_by_id(post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        return post

    async def update_post(self, post_id: UUID, user_id: UUID, content: str) -> Post:
        post = await self._get_owned_post(post_id, user_id)
        post.content = self._clean_content(content)
        await self.posts.touch(post)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def delete_post(self, post_id: UUID, user_id: UUID) -> Post:
        post = await self._get_owned_post(post_id, user_id)
        post.is_deleted = True
        await self.posts.touch(post)
        await self.session.commit()
        return post

    async def like_post(self, post_id: UUID) -> Post:
        # Likes are a plain counter; who liked a post is not recorded.
        post = await self.get_post(post_id)
        post.likes_count += 1
        await self.posts.touch(post)
        await self.session.commit()
        return post

    async def _get_owned_post(self, post_id: UUID, user_id: UUID) -> Post:
        post = await self.get_post(post_id)
        if post.author_id != user_id:
            raise PostOwnershipError(post_id, user_id)
        return post

    @staticmethod
    def _clean_content(content: str) -> str:
        cleaned = content.strip()
        if not cleaned:
            raise ValueError("Post content is required.")
        if len(cleaned) > MAX_POST_LENGTH:
            raise ValueError(f"Post content cannot exceed {MAX_POST_LENGTH} characters.")
        return cleaned

    @staticmethod
    def _validate_media(media: list[str], media_type: list[str]) -> None:
        if len(media) != len(media_type):
            raise MediaValidationError("Media and media type lists must have the same length.")
        if media_type.count(MediaType.VIDEO.value) > MAX_VIDEOS_PER_POST:
            raise MediaValidationError(f"Maximum {MAX_VIDEOS_PER_POST} video allowed per post.")
        if media_type.count(MediaType.IMAGE.value) > MAX_IMAGES_PER_POST:
            raise MediaValidationError(f"Maximum {MAX_IMAGES_PER_POST} images allowed per post.")

    @staticmethod
    def _post_created_payload(post: Post) -> dict[str, Any]:
        return {
            "postId": str(post.id),
            "authorId": str(post.author_id),
            "content": post.content,
        }
