"""
Event system for tutorboard.

Provides the EventBus and a process-wide `event_bus` instance used by
services that are not handed a bus explicitly.
"""

from .bus import EventBus, matches_pattern
from .types import (
    CallbackType,
    EventListener,
    EventMetrics,
    EventPayload,
    ListenerPriority,
)

event_bus = EventBus()

__all__ = [
    "event_bus",
    "EventBus",
    "EventMetrics",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
    "matches_pattern",
]
