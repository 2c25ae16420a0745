import asyncio
import logging
from typing import Any

import pytest

from pulse.infra.realtime.events import DomainEvent
from pulse.infra.realtime.hub import InMemoryRealtimeHub
from pulse.infra.realtime.publisher import HubDomainEventBus, NoopDomainEventBus


class FakeWebSocket:
    def __init__(self, delay: float = 0) -> None:
        self.delay = delay
        self.accepted = False
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Any) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        return None


class FailingHub(InMemoryRealtimeHub):
    async def broadcast(self, event, payload, exclude=None) -> int:
        raise RuntimeError("hub is down")


@pytest.mark.asyncio
async def test_publish_with_no_clients_returns_promptly() -> None:
    bus = HubDomainEventBus(InMemoryRealtimeHub())

    result = await asyncio.wait_for(
        bus.publish(DomainEvent.POST_CREATED, {"postId": "p1"}),
        timeout=1,
    )
    await bus.aclose()

    assert result.attempted
    assert result.recipients == 0
    assert result.error is None
    assert not result.delivered


@pytest.mark.asyncio
async def test_slow_client_does_not_block_publisher() -> None:
    hub = InMemoryRealtimeHub()
    slow = FakeWebSocket(delay=0.5)
    await hub.connect("c1", slow)
    bus = HubDomainEventBus(hub)

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await bus.publish(DomainEvent.POST_CREATED, {"postId": "p1"})
    elapsed = loop.time() - started

    assert elapsed < 0.1
    assert result.recipients == 1
    assert slow.sent == []

    await bus.aclose()
    assert slow.sent[0]["event"] == "post_created"
    assert bus.pending == 0


@pytest.mark.asyncio
async def test_publish_reaches_every_connection() -> None:
    hub = InMemoryRealtimeHub()
    first, second = FakeWebSocket(), FakeWebSocket()
    await hub.connect("c1", first)
    await hub.connect("c2", second)
    bus = HubDomainEventBus(hub)

    result = await bus.publish(DomainEvent.COMMENT_CREATED, {"commentId": "k1"})
    await bus.aclose()

    assert result.recipients == 2
    assert result.delivered
    for websocket in (first, second):
        assert websocket.sent[-1]["event"] == "comment_created"
        assert websocket.sent[-1]["payload"] == {"commentId": "k1"}


@pytest.mark.asyncio
async def test_background_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    bus = HubDomainEventBus(FailingHub())

    with caplog.at_level(logging.WARNING, logger="pulse.infra.realtime.publisher"):
        result = await bus.publish(DomainEvent.POST_CREATED, {"postId": "p1"})
        await bus.aclose()

    assert result.attempted
    assert result.error is None
    assert "hub is down" in caplog.text


@pytest.mark.asyncio
async def test_publish_after_close_reports_error() -> None:
    bus = HubDomainEventBus(InMemoryRealtimeHub())
    await bus.aclose()

    result = await bus.publish(DomainEvent.POST_CREATED, {"postId": "p1"})

    assert result.attempted
    assert result.error == "Event bus is closed"
    assert not result.delivered


@pytest.mark.asyncio
async def test_noop_bus_does_not_attempt() -> None:
    result = await NoopDomainEventBus().publish(DomainEvent.POST_CREATED, {})

    assert result.event == DomainEvent.POST_CREATED
    assert not result.attempted
    assert not result.delivered
