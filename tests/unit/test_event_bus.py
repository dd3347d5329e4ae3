"""
Unit Tests for EventBus
=======================

Purpose
-------
Test subscription, priority ordering, failure isolation and wildcard
routing of the in-process event bus.

Testing Strategy
----------------
- Unit tests (no database)
- Each test builds its own bus
"""

import asyncio

import pytest

from tutorboard.core.event.bus import EventBus, matches_pattern
from tutorboard.core.event.types import ListenerPriority
from tutorboard.core.logging.logger import LogContext, current_log_context


@pytest.mark.unit
class TestMatchesPattern:
    @pytest.mark.parametrize(
        "event_name,pattern,expected",
        [
            ("onboarding.completed", "onboarding.completed", True),
            ("onboarding.completed", "onboarding.*", True),
            ("onboarding.step_completed", "*.step_completed", True),
            ("achievement.unlocked", "onboarding.*", False),
            ("anything.at.all", "*", True),
        ],
    )
    def test_patterns(self, event_name, pattern, expected):
        assert matches_pattern(event_name, pattern) is expected


@pytest.mark.unit
@pytest.mark.asyncio
class TestPublish:
    """Test publish semantics."""

    async def test_listener_receives_payload(self):
        bus = EventBus()
        received = []

        async def listener(payload):
            received.append(payload)

        bus.subscribe("onboarding.completed", listener)

        await bus.publish("onboarding.completed", {"tutor_id": "t1"})

        assert received == [{"tutor_id": "t1"}]

    async def test_priority_order(self):
        bus = EventBus()
        calls = []

        async def normal(payload):
            calls.append("normal")

        async def critical(payload):
            calls.append("critical")

        async def high(payload):
            calls.append("high")

        bus.subscribe("e", normal, priority=ListenerPriority.NORMAL)
        bus.subscribe("e", critical, priority=ListenerPriority.CRITICAL)
        bus.subscribe("e", high, priority=ListenerPriority.HIGH)

        await bus.publish("e", {})

        assert calls == ["critical", "high", "normal"]

    async def test_failing_listener_is_isolated(self):
        bus = EventBus()
        received = []

        async def broken(payload):
            raise RuntimeError("boom")

        async def healthy(payload):
            received.append(payload)
            return "ok"

        bus.subscribe("e", broken, priority=ListenerPriority.HIGH)
        bus.subscribe("e", healthy)

        results = await bus.publish("e", {"x": 1})

        assert received == [{"x": 1}]
        assert results == [None, "ok"]
        assert bus.get_metrics().listener_errors == {"e": 1}

    async def test_slow_high_listener_times_out(self):
        bus = EventBus(high_timeout_seconds=0.01)

        async def slow(payload):
            await asyncio.sleep(1)

        bus.subscribe("e", slow, priority=ListenerPriority.HIGH)

        results = await bus.publish("e", {})

        assert results == [None]
        assert bus.get_metrics().listener_errors == {"e": 1}

    async def test_low_priority_runs_in_background(self):
        bus = EventBus()
        received = []

        async def low(payload):
            received.append(payload)

        bus.subscribe("e", low, priority=ListenerPriority.LOW)

        results = await bus.publish("e", {"x": 1})
        await bus.drain()

        assert results == []
        assert received == [{"x": 1}]

    async def test_sync_listener_supported(self):
        bus = EventBus()
        received = []

        bus.subscribe("e", received.append)

        await bus.publish("e", {"x": 1})

        assert received == [{"x": 1}]

    async def test_once_listener_fires_once(self):
        bus = EventBus()
        calls = []

        async def listener(payload):
            calls.append(payload)

        bus.subscribe("e", listener, once=True)

        await bus.publish("e", {})
        await bus.publish("e", {})

        assert len(calls) == 1
        assert bus.get_listener_count("e") == 0

    async def test_wildcard_subscription(self):
        bus = EventBus()
        names = []

        async def listener(payload):
            names.append(payload["name"])

        bus.subscribe("onboarding.*", listener)

        await bus.publish("onboarding.step_completed", {"name": "step"})
        await bus.publish("achievement.unlocked", {"name": "achievement"})

        assert names == ["step"]

    async def test_publish_without_listeners(self):
        bus = EventBus()

        assert await bus.publish("nobody.listens", {}) == []
        assert bus.get_metrics().events_published == {"nobody.listens": 1}

    async def test_event_log_context_scoped_to_dispatch(self):
        # Arrange
        bus = EventBus()
        seen = []

        async def listener(payload):
            seen.append(current_log_context())

        bus.subscribe("onboarding.completed", listener)

        # Act
        with LogContext(operation="complete_step", correlation_id="abc"):
            await bus.publish("onboarding.completed", {"tutor_id": "t1"})
            after = current_log_context()

        # Assert
        assert seen[0]["event_name"] == "onboarding.completed"
        assert seen[0]["operation"] == "complete_step"
        assert seen[0]["correlation_id"] == "abc"
        assert after == {"operation": "complete_step", "correlation_id": "abc"}


@pytest.mark.unit
class TestSubscription:
    """Test subscription bookkeeping."""

    def test_duplicate_identifier_ignored(self):
        bus = EventBus()

        async def listener(payload):
            return None

        bus.subscribe("e", listener, identifier="same")
        bus.subscribe("e", listener, identifier="same")

        assert bus.get_listener_count("e") == 1

    def test_unsubscribe(self):
        bus = EventBus()

        async def listener(payload):
            return None

        listener_id = bus.subscribe("e", listener)

        assert bus.unsubscribe("e", listener_id) is True
        assert bus.unsubscribe("e", listener_id) is False
        assert bus.get_all_events() == []

    def test_rejects_wrong_signature(self):
        bus = EventBus()

        async def listener(payload, extra):
            return None

        with pytest.raises(ValueError):
            bus.subscribe("e", listener)

    def test_clear(self):
        bus = EventBus()

        async def listener(payload):
            return None

        bus.subscribe("a", listener)
        bus.subscribe("b", listener)
        bus.clear()

        assert bus.get_listener_count() == 0
