import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pulse.infra.realtime.events import DomainEvent
from pulse.infra.realtime.hub import InMemoryRealtimeHub

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Outcome of a best-effort broadcast. Never raised, only returned.

    ``recipients`` counts the connections the event was dispatched to when it
    was scheduled; delivery itself happens in the background.
    """

    event: DomainEvent
    attempted: bool = True
    recipients: int = 0
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.error is None and self.recipients > 0


class DomainEventBus(Protocol):
    async def publish(
        self,
        event: DomainEvent,
        payload: Mapping[str, Any],
    ) -> PublishResult: ...


class NoopDomainEventBus:
    async def publish(
        self,
        event: DomainEvent,
        payload: Mapping[str, Any],
    ) -> PublishResult:
        _ = payload
        return PublishResult(event=event, attempted=False)


class HubDomainEventBus:
    """Broadcasts domain events to every connection held by the realtime hub.

    The fan-out runs as a background task so a slow client never holds up the
    request that produced the event.
    """

    def __init__(self, hub: InMemoryRealtimeHub) -> None:
        self._hub = hub
        self._pending: set[asyncio.Task[int]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def publish(
        self,
        event: DomainEvent,
        payload: Mapping[str, Any],
    ) -> PublishResult:
        if self._closed:
            logger.warning("Dropped %s event: event bus is closed", event.value)
            return PublishResult(event=event, error="Event bus is closed")

        try:
            recipients = self._hub.connection_count()
            task = asyncio.create_task(self._fan_out(event, dict(payload)))
        except Exception as exc:
            logger.warning("Dropped %s event: %s", event.value, exc)
            return PublishResult(event=event, error=str(exc) or type(exc).__name__)

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return PublishResult(event=event, recipients=recipients)

    async def aclose(self) -> None:
        """Stop accepting events and wait for in-flight fan-outs."""
        self._closed = True
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _fan_out(self, event: DomainEvent, payload: dict[str, Any]) -> int:
        try:
            recipients = await self._hub.broadcast(event, payload)
        except Exception as exc:
            logger.warning("Dropped %s event: %s", event.value, exc)
            return 0

        logger.debug("Published %s to %d connection(s)", event.value, recipients)
        return recipients
