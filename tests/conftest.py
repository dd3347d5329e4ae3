"""
Pytest Configuration and Fixtures for tutorboard Tests
======================================================

Purpose
-------
Centralized test fixtures and configuration for the tutorboard test suite.
Provides reusable fixtures for configuration, the event bus, the database,
services and domain models.

Responsibilities
----------------
- Clean ConfigManager state per test
- Isolated EventBus per test with an event recorder
- File-backed SQLite database (aiosqlite) for integration tests
- Service factories wired to the test bus
- Domain model factories for test data

Architecture Notes
------------------
- Unit tests use plain objects and mocks (fast, isolated)
- Integration tests run the real services against SQLite; the upsert and
  locking code paths are dialect-aware
- Each integration test gets a fresh database file under tmp_path
"""

from __future__ import annotations

import logging
import os
from typing import Any, AsyncGenerator, Dict, List, Tuple

import pytest
import pytest_asyncio

from tutorboard.core.config.config import Config
from tutorboard.core.config.manager import ConfigManager
from tutorboard.core.database.service import DatabaseService
from tutorboard.core.event.bus import EventBus
from tutorboard.core.event.types import ListenerPriority
from tutorboard.core.infra.audit_logger import AuditLogger
from tutorboard.database.models.progression.achievement import Achievement
from tutorboard.domain.models.achievement import AchievementDefinition, Rarity
from tutorboard.domain.models.onboarding import OnboardingCatalog
from tutorboard.modules.achievements.aggregator import TierConfig
from tutorboard.modules.achievements.service import AchievementService
from tutorboard.modules.onboarding.listener import OnboardingRewardService
from tutorboard.modules.onboarding.service import OnboardingService
from tutorboard.modules.onboarding.tracker import OnboardingStepTracker

from tests.factories import make_definition

STEP_IDS = (
    "welcome",
    "profile_setup",
    "best_practices",
    "ai_tools_intro",
    "first_student_guide",
)

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["TESTING"] = "true"
    Config.TESTING = True


@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts from packaged defaults with no overrides."""
    ConfigManager.reset()
    AuditLogger.reset_metrics()
    yield
    ConfigManager.reset()


# ============================================================================
# EVENT BUS FIXTURES
# ============================================================================


class EventRecorder:
    """Collects (event_name, payload) pairs published on a bus."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def capture(self, event_name: str):
        async def _capture(payload: Dict[str, Any]) -> None:
            self.events.append((event_name, dict(payload)))

        return _capture

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def payloads(self, event_name: str) -> List[Dict[str, Any]]:
        return [payload for name, payload in self.events if name == event_name]


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh EventBus per test."""
    return EventBus()


@pytest.fixture
def recorder(event_bus: EventBus) -> EventRecorder:
    """
    Record every event published on `event_bus`, in publish order.

    One CRITICAL listener per event name of interest keeps ordering exact.
    """
    rec = EventRecorder()
    for name in (
        "onboarding.step_completed",
        "onboarding.completed",
        "achievement.unlocked",
        AuditLogger.EVENT_NAME,
    ):
        event_bus.subscribe(
            name,
            rec.capture(name),
            priority=ListenerPriority.CRITICAL,
            identifier=f"test.recorder.{name}",
        )
    return rec


@pytest.fixture
def mock_event_bus(mocker):
    """
    Mock EventBus for unit tests.

    Scope: function
    Uses: Unit tests that need to mock event publishing
    """
    mock_bus = mocker.MagicMock()
    mock_bus.publish = mocker.AsyncMock(return_value=[])
    mock_bus.subscribe = mocker.MagicMock(return_value="listener-id")
    return mock_bus


@pytest.fixture
def test_logger() -> logging.Logger:
    return logging.getLogger("tutorboard.tests")


# ============================================================================
# DOMAIN FACTORIES
# ============================================================================


@pytest.fixture
def catalog() -> OnboardingCatalog:
    return OnboardingCatalog.from_config(list(STEP_IDS))


@pytest.fixture
def tracker(catalog: OnboardingCatalog) -> OnboardingStepTracker:
    return OnboardingStepTracker(catalog, minutes_per_step=5)


@pytest.fixture
def session_definitions() -> List[AchievementDefinition]:
    """The sessions_count ladder used across achievement tests."""
    return [
        make_definition("sessions_10", "sessions_count", 10, 100, Rarity.COMMON),
        make_definition("sessions_50", "sessions_count", 50, 500, Rarity.RARE),
        make_definition("sessions_100", "sessions_count", 100, 2000, Rarity.EPIC),
        make_definition("sessions_500", "sessions_count", 500, 5000, Rarity.LEGENDARY),
    ]


@pytest.fixture
def tier_config() -> TierConfig:
    return TierConfig.from_config(
        {
            "sessions_count": [10, 50, 100, 500],
            "hours_taught": [10, 25, 50, 100],
        },
        {
            "sessions_count": {
                "title": "Teaching Master",
                "description": "Complete tutoring sessions",
                "icon": "📚",
            },
        },
    )


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """
    Initialize DatabaseService against a fresh SQLite file.

    Scope: function (new database per test, clean slate)
    """
    Config.TESTING = True
    await DatabaseService.shutdown()
    await DatabaseService.initialize(f"sqlite+aiosqlite:///{tmp_path / 'tutorboard.db'}")
    await DatabaseService.create_schema()

    yield

    await DatabaseService.shutdown()


async def _insert_achievements(definitions: List[AchievementDefinition]) -> None:
    async with DatabaseService.get_transaction() as session:
        for definition in definitions:
            session.add(
                Achievement(
                    id=definition.id,
                    title=definition.title,
                    description=definition.description,
                    icon=definition.icon,
                    kind=definition.kind,
                    condition_type=definition.condition_type,
                    condition_value=definition.condition_value,
                    condition_timeframe=definition.condition_timeframe,
                    xp_reward=definition.xp_reward,
                    rarity=definition.rarity.value,
                )
            )


@pytest.fixture
def seed_achievements(database):
    """Coroutine that inserts achievement definitions directly."""
    return _insert_achievements


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def onboarding_service(database, event_bus, recorder, test_logger) -> OnboardingService:
    return OnboardingService(ConfigManager, event_bus, test_logger)


@pytest.fixture
def reward_service(database, event_bus, test_logger) -> OnboardingRewardService:
    return OnboardingRewardService(ConfigManager, event_bus, test_logger)


@pytest.fixture
def achievement_service(database, event_bus, recorder, test_logger) -> AchievementService:
    return AchievementService(ConfigManager, event_bus, test_logger)

