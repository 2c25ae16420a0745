"""Realtime presence and chat relay over websockets."""

from pulse.infra.realtime.gateway import ConnectionSession, RealtimeGateway
from pulse.infra.realtime.hub import InMemoryRealtimeHub
from pulse.infra.realtime.presence import PresenceEntry, PresenceRegistry
from pulse.infra.realtime.publisher import (
    DomainEventBus,
    HubDomainEventBus,
    NoopDomainEventBus,
    PublishResult,
)

__all__ = [
    "ConnectionSession",
    "DomainEventBus",
    "HubDomainEventBus",
    "InMemoryRealtimeHub",
    "NoopDomainEventBus",
    "PresenceEntry",
    "PresenceRegistry",
    "PublishResult",
    "RealtimeGateway",
]
