import asyncio
from collections import defaultdict, deque
from dataclasses import dataclass
from time import monotonic


@dataclass(frozen=True, slots=True)
class RateLimitRule:
    limit: int
    window_seconds: int


class InMemoryRateLimiter:
    """Sliding-window limiter keyed by an arbitrary string (e.g. a login email)."""

    def __init__(self) -> None:
        self._events: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._events)

    async def allow(self, key: str, rule: RateLimitRule) -> bool:
        now = monotonic()
        window_start = now - rule.window_seconds

        async with self._lock:
            self._forget_expired(window_start)
            events = self._events[key]
            if len(events) >= rule.limit:
                return False

            events.append(now)
            return True

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._events.pop(key, None)

    def _forget_expired(self, window_start: float) -> None:
        # Keys left with no events in the window are dropped so the map does not grow.
        for key in list(self._events):
            events = self._events[key]
            while events and events[0] <= window_start:
                events.popleft()
            if not events:
                del self._events[key]
