from typing import Any

import pytest
from starlette.websockets import WebSocketDisconnect

from pulse.infra.realtime.events import RealtimeEvent
from pulse.infra.realtime.hub import InMemoryRealtimeHub


class FakeWebSocket:
    def __init__(self, broken: bool = False) -> None:
        self.broken = broken
        self.accepted = False
        self.closed_code: int | None = None
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Any) -> None:
        if self.broken:
            raise WebSocketDisconnect(code=1006)
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_code = code


@pytest.mark.asyncio
async def test_connect_accepts_socket() -> None:
    hub = InMemoryRealtimeHub()
    websocket = FakeWebSocket()

    await hub.connect("c1", websocket)

    assert websocket.accepted
    assert hub.connection_count() == 1


@pytest.mark.asyncio
async def test_join_is_idempotent() -> None:
    hub = InMemoryRealtimeHub()
    websocket = FakeWebSocket()
    await hub.connect("c1", websocket)

    await hub.join("c1", "u1_u2")
    await hub.join("c1", "u1_u2")
    delivered = await hub.emit(["u1_u2"], RealtimeEvent.RECEIVE_MESSAGE, {"content": "hi"})

    assert hub.member_count("u1_u2") == 1
    assert delivered == 1
    assert len(websocket.sent) == 1
    assert websocket.sent[0]["room"] == "u1_u2"


@pytest.mark.asyncio
async def test_join_for_unknown_connection_is_ignored() -> None:
    hub = InMemoryRealtimeHub()

    await hub.join("ghost", "u1_u2")

    assert hub.member_count("u1_u2") == 0


@pytest.mark.asyncio
async def test_emit_deduplicates_across_rooms_and_honours_exclude() -> None:
    hub = InMemoryRealtimeHub()
    first, second = FakeWebSocket(), FakeWebSocket()
    await hub.connect("c1", first)
    await hub.connect("c2", second)
    for room in ("user_u1", "u1_u2"):
        await hub.join("c1", room)
        await hub.join("c2", room)

    delivered = await hub.emit(
        ["user_u1", "u1_u2"],
        RealtimeEvent.RECEIVE_MESSAGE,
        {"content": "hi"},
        exclude="c2",
    )

    assert delivered == 1
    assert len(first.sent) == 1
    assert second.sent == []


@pytest.mark.asyncio
async def test_leave_and_disconnect_clean_up_rooms() -> None:
    hub = InMemoryRealtimeHub()
    await hub.connect("c1", FakeWebSocket())
    await hub.join("c1", "user_u1")
    await hub.join("c1", "u1_u2")

    await hub.leave("c1", "u1_u2")
    assert hub.rooms_of("c1") == {"user_u1"}

    await hub.disconnect("c1")
    assert hub.rooms_of("c1") == set()
    assert hub.member_count("user_u1") == 0
    assert hub.connection_count() == 0


@pytest.mark.asyncio
async def test_broken_socket_is_dropped_on_delivery() -> None:
    hub = InMemoryRealtimeHub()
    healthy, broken = FakeWebSocket(), FakeWebSocket(broken=True)
    await hub.connect("c1", healthy)
    await hub.connect("c2", broken)

    delivered = await hub.broadcast(RealtimeEvent.USER_OFFLINE, {"userId": "u3"})

    assert delivered == 1
    assert hub.connection_count() == 1
    assert healthy.sent[0]["event"] == "user_offline"
    assert "sent_at" in healthy.sent[0]


@pytest.mark.asyncio
async def test_close_all_closes_every_socket() -> None:
    hub = InMemoryRealtimeHub()
    sockets = [FakeWebSocket(), FakeWebSocket()]
    for index, websocket in enumerate(sockets):
        await hub.connect(f"c{index}", websocket)

    await hub.close_all(code=1001, reason="bye")

    assert [websocket.closed_code for websocket in sockets] == [1001, 1001]
