"""
Core event types for the tutorboard EventBus.

Priority Levels
---------------
- CRITICAL (0): Sequential, awaited, timeout-protected.
- HIGH (10): Sequential, awaited, timeout-protected. Rewards run here.
- NORMAL (50): Concurrent, awaited.
- LOW (100): Fire-and-forget. Use for audit trails and metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    """Listener priority; lower values execute first."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    A registered event listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        Determines execution order and concurrency tier.
    identifier:
        Unique string identifier for deduplication and unsubscription.
    once:
        If True, the listener is removed before its first execution.
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str],
        once: bool,
    ) -> EventListener:
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(
                callback, "__qualname__", getattr(callback, "__name__", "callback")
            )
            identifier = f"{module}.{qualname}@{event_name}"

        return cls(
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )


@dataclass(slots=True)
class EventMetrics:
    events_published: dict[str, int]
    listener_errors: dict[str, int]
    total_listeners: int

    def get_summary(self) -> dict[str, Any]:
        total_events = sum(self.events_published.values())
        total_errors = sum(self.listener_errors.values())
        error_rate = (total_errors / total_events * 100) if total_events else 0.0
        return {
            "total_events_published": total_events,
            "events_by_type": dict(self.events_published),
            "total_errors": total_errors,
            "errors_by_event": dict(self.listener_errors),
            "total_listeners": self.total_listeners,
            "error_rate": round(error_rate, 2),
        }
