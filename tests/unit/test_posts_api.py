from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pulse.api.dependencies import get_current_account
from pulse.api.v1.routes import posts
from pulse.infra.realtime.events import DomainEvent
from pulse.infra.realtime.publisher import PublishResult
from pulse.services.errors import PostNotFoundError, PostOwnershipError
from pulse.services.post_service import PostCreated


@dataclass(slots=True)
class FakeAccount:
    id: UUID


@dataclass(slots=True)
class FakePost:
    id: UUID
    author_id: UUID
    content: str
    media: list[str] = field(default_factory=list)
    media_type: list[str] = field(default_factory=list)
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FakePostService:
    def __init__(self) -> None:
        self.owner_id = uuid4()
        self.post = FakePost(id=uuid4(), author_id=self.owner_id, content="hello")

    async def create_post(self, author_id, content, media=None, media_type=None) -> PostCreated:
        post = FakePost(id=uuid4(), author_id=author_id, content=content)
        return PostCreated(post=post, notification=PublishResult(event=DomainEvent.POST_CREATED))

    async def get_post(self, post_id: UUID) -> FakePost:
        if post_id != self.post.id:
            raise PostNotFoundError(post_id)
        return self.post

    async def delete_post(self, post_id: UUID, user_id: UUID) -> FakePost:
        post = await self.get_post(post_id)
        if user_id != post.author_id:
            raise PostOwnershipError(post_id, user_id)
        return post


def _client(service: FakePostService, account: FakeAccount) -> TestClient:
    app = FastAPI()
    app.include_router(posts.router, prefix="/posts")
    app.dependency_overrides[posts.get_post_service] = lambda: service
    app.dependency_overrides[get_current_account] = lambda: account
    return TestClient(app)


def test_create_post_returns_created() -> None:
    account = FakeAccount(id=uuid4())
    client = _client(FakePostService(), account)

    response = client.post("/posts", json={"content": "first post"})

    assert response.status_code == 201
    body = response.json()
    assert body["content"] == "first post"
    assert body["author_id"] == str(account.id)


def test_create_post_rejects_oversized_content() -> None:
    client = _client(FakePostService(), FakeAccount(id=uuid4()))

    response = client.post("/posts", json={"content": "x" * 301})

    assert response.status_code == 422


def test_missing_post_maps_to_not_found() -> None:
    client = _client(FakePostService(), FakeAccount(id=uuid4()))

    response = client.get(f"/posts/{uuid4()}")

    assert response.status_code == 404


def test_deleting_someone_elses_post_is_forbidden() -> None:
    service = FakePostService()
    client = _client(service, FakeAccount(id=uuid4()))

    response = client.delete(f"/posts/{service.post.id}")

    assert response.status_code == 403


def test_owner_can_delete_post() -> None:
    service = FakePostService()
    client = _client(service, FakeAccount(id=service.owner_id))

    response = client.delete(f"/posts/{service.post.id}")

    assert response.status_code == 204
