"""Core infrastructure for delivering room events to simulated clients."""

from .event_bus import EventBus, HandlerConfig
from .queues import BoundedQueue, OverflowPolicy

__all__ = [
    "EventBus",
    "HandlerConfig",
    "BoundedQueue",
    "OverflowPolicy",
]
