import asyncio
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from starlette.websockets import WebSocketDisconnect

from pulse.infra.realtime.events import OutboundEvent


class RealtimeConnection(Protocol):
    async def accept(self) -> None: ...

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class InMemoryRealtimeHub:
    """In-process room hub for websocket fanout, keyed by connection id."""

    def __init__(self) -> None:
        self._connections: dict[str, RealtimeConnection] = {}
        self._room_members: dict[str, set[str]] = defaultdict(set)
        self._connection_rooms: dict[str, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, connection_id: str, websocket: RealtimeConnection) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[connection_id] = websocket

    def connection_count(self) -> int:
        return len(self._connections)

    def member_count(self, room: str) -> int:
        members = self._room_members.get(room)
        if members is None:
            return 0
        return len(members)

    def rooms_of(self, connection_id: str) -> set[str]:
        return set(self._connection_rooms.get(connection_id, set()))

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            self._forget(connection_id)

    async def join(self, connection_id: str, room: str) -> None:
        async with self._lock:
            if connection_id not in self._connections:
                return
            self._room_members[room].add(connection_id)
            self._connection_rooms[connection_id].add(room)

    async def leave(self, connection_id: str, room: str) -> None:
        async with self._lock:
            members = self._room_members.get(room)
            if members is not None:
                members.discard(connection_id)
                if not members:
                    self._room_members.pop(room, None)

            rooms = self._connection_rooms.get(connection_id)
            if rooms is not None:
                rooms.discard(room)
                if not rooms:
                    self._connection_rooms.pop(connection_id, None)

    async def send(
        self,
        connection_id: str,
        event: OutboundEvent,
        payload: Any,
    ) -> bool:
        delivered = await self._deliver([connection_id], self._envelope(event, payload))
        return delivered > 0

    async def emit(
        self,
        rooms: Sequence[str],
        event: OutboundEvent,
        payload: Mapping[str, Any],
        exclude: str | None = None,
    ) -> int:
        """Deliver to every member of ``rooms`` once; ``exclude`` skips one connection."""
        unique_rooms = [room for room in dict.fromkeys(rooms) if room]
        if not unique_rooms:
            return 0

        async with self._lock:
            recipients_by_room = {
                room: set(self._room_members.get(room, set())) for room in unique_rooms
            }

        delivered = 0
        seen: set[str] = set()
        if exclude is not None:
            seen.add(exclude)
        for room, recipients in recipients_by_room.items():
            targets = recipients - seen
            if not targets:
                continue
            seen.update(targets)
            delivered += await self._deliver(
                targets, self._envelope(event, payload, room=room)
            )
        return delivered

    async def broadcast(
        self,
        event: OutboundEvent,
        payload: Any,
        exclude: str | None = None,
    ) -> int:
        async with self._lock:
            targets = [
                connection_id
                for connection_id in self._connections
                if connection_id != exclude
            ]
        return await self._deliver(targets, self._envelope(event, payload))

    async def close_all(self, code: int = 1001, reason: str | None = None) -> None:
        async with self._lock:
            websockets = list(self._connections.values())
        for websocket in websockets:
            try:
                await websocket.close(code=code, reason=reason)
            except (RuntimeError, WebSocketDisconnect):
                continue

    async def _deliver(self, connection_ids: Iterable[str], envelope: dict[str, Any]) -> int:
        async with self._lock:
            recipients = [
                (connection_id, self._connections[connection_id])
                for connection_id in connection_ids
                if connection_id in self._connections
            ]

        delivered = 0
        stale: list[str] = []
        for connection_id, websocket in recipients:
            try:
                await websocket.send_json(envelope)
            except (RuntimeError, WebSocketDisconnect):
                stale.append(connection_id)
                continue
            delivered += 1

        if stale:
            async with self._lock:
                for connection_id in stale:
                    self._forget(connection_id)
        return delivered

    def _forget(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        rooms = self._connection_rooms.pop(connection_id, set())
        for room in rooms:
            members = self._room_members.get(room)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                self._room_members.pop(room, None)

    @staticmethod
    def _envelope(
        event: OutboundEvent, payload: Any, room: str | None = None
    ) -> dict[str, Any]:
        envelope: dict[str, Any] = {
            "event": event.value,
            "payload": payload,
            "sent_at": datetime.now(UTC).isoformat(),
        }
        if room is not None:
            envelope["room"] = room
        return envelope
