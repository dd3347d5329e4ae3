"""
tutorboard EventBus: async pub/sub with tiered concurrency.

Responsibilities
----------------
- Register/unregister event listeners with priorities
- Publish events to all matching listeners (exact + wildcard)
- Execute listeners according to the tiered concurrency model:
  * CRITICAL: sequential, ordered, awaited with timeout
  * HIGH: sequential, ordered, awaited with timeout
  * NORMAL: concurrent (gather), awaited
  * LOW: fire-and-forget background tasks
- Error isolation (one failing listener never blocks others)

Design Decisions
----------------
- Instance-based, so tests can build a private bus.
- Listener timeouts come from ConfigManager (`core.event_bus.*`) unless
  passed explicitly.
- Publishing enriches the log context with the event name and payload keys.
"""

from __future__ import annotations

import asyncio
import inspect
from logging import Logger
from typing import Any, Optional

from tutorboard.core.config.manager import ConfigManager
from tutorboard.core.event.types import (
    CallbackType,
    EventListener,
    EventMetrics,
    EventPayload,
    ListenerPriority,
)
from tutorboard.core.logging.logger import LogContext, get_logger

logger = get_logger(__name__)


def matches_pattern(event_name: str, pattern: str) -> bool:
    """
    Check if an event name matches a wildcard pattern.

    >>> matches_pattern("onboarding.completed", "onboarding.*")
    True
    >>> matches_pattern("achievement.unlocked", "*.unlocked")
    True
    >>> matches_pattern("achievement.unlocked", "onboarding.*")
    False
    """
    if pattern == "*":
        return True
    if "*" not in pattern:
        return event_name == pattern

    while "**" in pattern:
        pattern = pattern.replace("**", "*")

    parts = pattern.split("*")
    if parts[0] and not event_name.startswith(parts[0]):
        return False
    if parts[-1] and not event_name.endswith(parts[-1]):
        return False
    if len(event_name) < len(parts[0]) + len(parts[-1]):
        return False

    idx = len(parts[0])
    for mid in parts[1:-1]:
        if not mid:
            continue
        next_idx = event_name.find(mid, idx)
        if next_idx == -1:
            return False
        idx = next_idx + len(mid)

    return idx <= len(event_name) - len(parts[-1])


class EventBus:
    """
    Async EventBus with a tiered concurrency model.

    Designed for single-threaded asyncio usage. All methods must be called
    from the same event loop.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("onboarding.completed", on_completed, priority=ListenerPriority.HIGH)
    >>> await bus.publish("onboarding.completed", {"tutor_id": "t-1"})
    """

    def __init__(
        self,
        *,
        enable_metrics: bool = True,
        critical_timeout_seconds: Optional[float] = None,
        high_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._listeners: dict[str, list[EventListener]] = {}
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._metrics_enabled = enable_metrics
        self._events_published: dict[str, int] = {}
        self._listener_errors: dict[str, int] = {}

        self._critical_timeout = self._load_timeout(
            "core.event_bus.critical_timeout_seconds", critical_timeout_seconds, 5.0
        )
        self._high_timeout = self._load_timeout(
            "core.event_bus.high_timeout_seconds", high_timeout_seconds, 5.0
        )

        logger.debug(
            "EventBus initialized",
            extra={
                "metrics_enabled": self._metrics_enabled,
                "critical_timeout_seconds": self._critical_timeout,
                "high_timeout_seconds": self._high_timeout,
            },
        )

    @staticmethod
    def _load_timeout(key: str, override: Optional[float], default: float) -> float:
        """Resolve a timeout: override, then config, then default."""
        if override is not None:
            return float(override)

        value = ConfigManager.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Invalid timeout in config, using default",
                extra={"config_key": key, "value": value, "default_value": default},
            )
            return float(default)

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        """
        Ensure the callback accepts exactly one parameter.

        Raises
        ------
        ValueError
            If the callback signature is invalid.
        """
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", None) or getattr(
                callback, "__name__", repr(callback)
            )
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
        allow_duplicates: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event name or wildcard pattern.

        Returns the listener identifier for later unsubscription. Registering
        the same identifier twice for one event is a no-op unless
        `allow_duplicates` is set.
        """
        self._validate_callback_signature(callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )

        bucket = self._listeners.setdefault(event_name, [])
        if not allow_duplicates and any(
            existing.identifier == listener.identifier for existing in bucket
        ):
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
            return listener.identifier

        bucket.append(listener)
        bucket.sort(key=lambda lst: lst.priority.value)

        logger.debug(
            "EventBus: subscribed listener",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "priority": listener.priority.name,
                "once": listener.once,
            },
        )
        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        bucket = self._listeners.get(event_name)
        if not bucket:
            return False

        remaining = [lst for lst in bucket if lst.identifier != identifier]
        removed = len(remaining) != len(bucket)
        if remaining:
            self._listeners[event_name] = remaining
        else:
            del self._listeners[event_name]

        if removed:
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )
        return removed

    def clear(self) -> None:
        """Remove all listeners from all events."""
        total = self.get_listener_count()
        self._listeners.clear()
        logger.info(
            "EventBus: cleared all listeners",
            extra={"previous_listener_count": total},
        )

    def _extract_listeners(self, event_name: str) -> list[EventListener]:
        """Collect matching listeners in priority order and prune one-shots."""
        matched: list[EventListener] = []
        for key in list(self._listeners.keys()):
            if not matches_pattern(event_name, key):
                continue
            bucket = self._listeners[key]
            matched.extend(bucket)
            keep = [lst for lst in bucket if not lst.once]
            if keep:
                self._listeners[key] = keep
            else:
                del self._listeners[key]

        matched.sort(key=lambda lst: lst.priority.value)
        return matched

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event to all subscribed listeners.

        Returns results from CRITICAL/HIGH/NORMAL listeners. LOW-tier
        listeners are fire-and-forget and not included. Listener failures
        are logged and counted, never raised to the publisher.
        """
        if self._metrics_enabled:
            self._events_published[event_name] = (
                self._events_published.get(event_name, 0) + 1
            )

        with LogContext(event_name=event_name, event_keys=list(data.keys())):
            return await self._dispatch(event_name, data)

    async def _dispatch(self, event_name: str, data: EventPayload) -> list[Any]:
        listeners = self._extract_listeners(event_name)
        if not listeners:
            logger.debug(
                "EventBus: no listeners for event", extra={"event_name": event_name}
            )
            return []

        results: list[Any] = []

        for listener in listeners:
            if listener.priority is ListenerPriority.CRITICAL:
                results.append(
                    await self._run_with_timeout(
                        listener, event_name, data, self._critical_timeout
                    )
                )
        for listener in listeners:
            if listener.priority is ListenerPriority.HIGH:
                results.append(
                    await self._run_with_timeout(
                        listener, event_name, data, self._high_timeout
                    )
                )

        normal = [lst for lst in listeners if lst.priority is ListenerPriority.NORMAL]
        if normal:
            results.extend(
                await asyncio.gather(
                    *[self._run_listener(lst, event_name, data) for lst in normal]
                )
            )

        loop = asyncio.get_running_loop()
        for listener in listeners:
            if listener.priority is ListenerPriority.LOW:
                task = loop.create_task(
                    self._run_listener(listener, event_name, data),
                    name=f"eventbus-low-{event_name}-{listener.identifier}",
                )
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)

        return results

    async def drain(self) -> None:
        """Wait for all in-flight LOW-tier listeners to finish."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    async def _run_with_timeout(
        self,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        timeout: Optional[float],
    ) -> Any:
        if timeout is None or timeout <= 0:
            return await self._run_listener(listener, event_name, payload)

        try:
            return await asyncio.wait_for(
                self._run_listener(listener, event_name, payload), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            self._handle_listener_error(event_name, listener, exc, logger)
            return None

    async def _run_listener(
        self, listener: EventListener, event_name: str, payload: EventPayload
    ) -> Any:
        try:
            if inspect.iscoroutinefunction(listener.callback):
                return await listener.callback(payload)

            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, listener.callback, payload)
        except Exception as exc:
            self._handle_listener_error(event_name, listener, exc, logger)
            return None

    def _handle_listener_error(
        self,
        event_name: str,
        listener: EventListener,
        exc: BaseException,
        log: Logger,
    ) -> None:
        if self._metrics_enabled:
            self._listener_errors[event_name] = (
                self._listener_errors.get(event_name, 0) + 1
            )

        log.error(
            "EventBus listener error",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "priority": listener.priority.name,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
            exc_info=(type(exc), exc, exc.__traceback__),
        )

    # ------------------------------------------------------------------ #
    # Metrics & Introspection
    # ------------------------------------------------------------------ #

    def get_metrics(self) -> Optional[EventMetrics]:
        if not self._metrics_enabled:
            return None
        return EventMetrics(
            events_published=dict(self._events_published),
            listener_errors=dict(self._listener_errors),
            total_listeners=self.get_listener_count(),
        )

    def get_metrics_summary(self) -> dict[str, Any]:
        metrics = self.get_metrics()
        if metrics is None:
            return {}
        return metrics.get_summary()

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        """
        Total listener count, or the number of listeners (wildcards
        included) that would receive `event_name`.
        """
        if event_name is None:
            return sum(len(bucket) for bucket in self._listeners.values())
        return sum(
            len(bucket)
            for key, bucket in self._listeners.items()
            if matches_pattern(event_name, key)
        )

    def get_all_events(self) -> list[str]:
        return sorted(self._listeners.keys())
