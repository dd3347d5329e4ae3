"""
Unit Tests for Achievement Domain Models
========================================

Purpose
-------
Test achievement definitions, stored progress and read models.

Testing Strategy
----------------
- Unit tests (fast, no database)
- AAA pattern (Arrange, Act, Assert)
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from tests.factories import make_definition
from tutorboard.domain.models.achievement import (
    AchievementDefinition,
    AchievementProgressItem,
    Rarity,
    TutorAchievementProgress,
)
from tutorboard.domain.models.base import DomainValidationError


@pytest.mark.unit
@pytest.mark.domain
class TestAchievementDefinition:
    """Test AchievementDefinition value object."""

    def test_rarity_coerced_from_string(self):
        definition = AchievementDefinition(
            id="a", title="A", condition_type="sessions_count",
            condition_value=10, rarity="Epic",
        )

        assert definition.rarity is Rarity.EPIC

    def test_unknown_rarity_rejected(self):
        with pytest.raises(DomainValidationError):
            make_definition("a", "sessions_count", 10, rarity="mythic")

    @pytest.mark.parametrize("value", [-1, float("nan"), float("inf")])
    def test_bad_condition_value_rejected(self, value):
        with pytest.raises(DomainValidationError):
            make_definition("a", "sessions_count", value)

    def test_blank_condition_type_rejected(self):
        with pytest.raises(DomainValidationError):
            make_definition("a", " ", 10)

    def test_from_db(self):
        row = SimpleNamespace(
            id="sessions_10",
            title="First Steps",
            description=None,
            icon=None,
            kind=None,
            condition_type="sessions_count",
            condition_value=10,
            condition_timeframe=None,
            xp_reward=100,
            rarity="common",
        )

        definition = AchievementDefinition.from_db(row)

        assert definition.condition_value == 10.0
        assert definition.description == ""
        assert definition.kind == "milestone"
        assert definition.to_dict()["rarity"] == "common"


@pytest.mark.unit
@pytest.mark.domain
class TestProgressModels:
    """Test stored progress and merged items."""

    def test_from_db_normalizes_naive_unlock(self):
        row = SimpleNamespace(
            tutor_id="t1",
            achievement_id="a",
            progress=10,
            unlocked_at=datetime(2025, 1, 1, 9, 0),
        )

        progress = TutorAchievementProgress.from_db(row)

        assert progress.is_unlocked is True
        assert progress.unlocked_at.tzinfo is timezone.utc

    def test_item_to_dict(self):
        unlocked_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
        item = AchievementProgressItem(
            make_definition("a", "sessions_count", 10, 100),
            progress=10,
            unlocked_at=unlocked_at,
        )

        data = item.to_dict()

        assert data["is_unlocked"] is True
        assert data["progress"] == 10
        assert data["unlocked_at"] == unlocked_at.isoformat()
        assert data["xp_reward"] == 100
