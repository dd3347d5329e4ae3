"""
Unit Tests for Onboarding Domain Models
=======================================

Purpose
-------
Test the onboarding catalog, status read model and progress aggregate
without external dependencies.

Test Coverage
-------------
- Catalog construction from config entries and its invariants
- Percent rounding
- Aggregate persistence mapping
- Naive timestamp normalization

Testing Strategy
----------------
- Unit tests (fast, no database)
- AAA pattern (Arrange, Act, Assert)
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from tutorboard.domain.models.base import DomainValidationError
from tutorboard.domain.models.onboarding import (
    OnboardingCatalog,
    OnboardingProgress,
    OnboardingStep,
    percent_of,
)


# ============================================================================
# CATALOG TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestOnboardingCatalog:
    """Test OnboardingCatalog value object."""

    def test_from_plain_ids(self):
        catalog = OnboardingCatalog.from_config(["a", "b", "c"])

        assert catalog.step_ids == ("a", "b", "c")
        assert [step.order for step in catalog] == [0, 1, 2]
        assert len(catalog) == 3

    def test_from_mappings_with_explicit_order(self):
        catalog = OnboardingCatalog.from_config(
            [
                {"id": "second", "order": 1, "title": "Second"},
                {"id": "first", "order": 0, "title": "First"},
            ]
        )

        assert catalog.step_ids == ("first", "second")
        assert catalog.get("second").title == "Second"

    def test_membership(self):
        catalog = OnboardingCatalog.from_config(["a", "b"])

        assert "a" in catalog
        assert "z" not in catalog
        assert catalog.get("z") is None

    def test_rejects_empty_catalog(self):
        with pytest.raises(DomainValidationError):
            OnboardingCatalog.from_config([])

    def test_rejects_duplicate_ids(self):
        with pytest.raises(DomainValidationError):
            OnboardingCatalog.from_config(["a", "a"])

    def test_rejects_duplicate_orders(self):
        with pytest.raises(DomainValidationError):
            OnboardingCatalog(
                steps=(OnboardingStep(id="a", order=0), OnboardingStep(id="b", order=0))
            )

    def test_rejects_order_gaps(self):
        with pytest.raises(DomainValidationError):
            OnboardingCatalog(
                steps=(OnboardingStep(id="a", order=0), OnboardingStep(id="b", order=2))
            )

    def test_rejects_blank_step_id(self):
        with pytest.raises(DomainValidationError):
            OnboardingStep(id="  ", order=0)

    def test_rejects_non_mapping_entry(self):
        with pytest.raises(DomainValidationError):
            OnboardingCatalog.from_config([42])


# ============================================================================
# PERCENT TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestPercentOf:
    @pytest.mark.parametrize(
        "done,total,expected",
        [(0, 5, 0), (1, 5, 20), (1, 3, 33), (2, 3, 67), (1, 8, 13), (5, 5, 100), (0, 0, 0)],
    )
    def test_rounding(self, done, total, expected):
        assert percent_of(done, total) == expected


# ============================================================================
# AGGREGATE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestOnboardingProgress:
    """Test OnboardingProgress aggregate."""

    def test_from_db_normalizes_naive_timestamps(self):
        catalog = OnboardingCatalog.from_config(["a", "b"])
        row = SimpleNamespace(
            tutor_id="t1",
            completed_steps=["a"],
            started_at=datetime(2025, 1, 1, 9, 0),
            completed_at=None,
        )

        progress = OnboardingProgress.from_db(row, catalog)

        assert progress.started_at.tzinfo is timezone.utc
        assert progress.completed_steps == ("a",)
        assert progress.current_step == "b"

    def test_from_db_handles_null_steps(self):
        catalog = OnboardingCatalog.from_config(["a"])
        row = SimpleNamespace(
            tutor_id="t1", completed_steps=None, started_at=None, completed_at=None
        )

        progress = OnboardingProgress.from_db(row, catalog)

        assert progress.completed_steps == ()

    def test_to_db_updates(self):
        catalog = OnboardingCatalog.from_config(["a", "b"])
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        progress = OnboardingProgress("t1", catalog)

        progress.record_completion(catalog.get("a"), now)

        assert progress.to_db_updates() == {
            "completed_steps": ["a"],
            "started_at": now,
            "completed_at": None,
        }

    def test_record_completion_twice_rejected(self):
        catalog = OnboardingCatalog.from_config(["a", "b"])
        progress = OnboardingProgress("t1", catalog, completed_steps=["a"])

        with pytest.raises(DomainValidationError):
            progress.record_completion(catalog.get("a"), datetime.now(timezone.utc))

    def test_clear_domain_events(self):
        catalog = OnboardingCatalog.from_config(["a"])
        progress = OnboardingProgress("t1", catalog)
        progress.record_completion(catalog.get("a"), datetime.now(timezone.utc))

        events = progress.clear_domain_events()

        assert [e.event_name for e in events] == [
            "onboarding.step_completed",
            "onboarding.completed",
        ]
        assert progress.get_pending_events() == []

    def test_status_to_dict(self):
        catalog = OnboardingCatalog.from_config(["a", "b"])
        progress = OnboardingProgress("t1", catalog)

        data = progress.to_status().to_dict()

        assert data == {
            "tutor_id": "t1",
            "completed_steps": [],
            "current_step": "a",
            "total_steps": 2,
            "percent_complete": 0,
            "is_complete": False,
            "started_at": None,
            "completed_at": None,
        }
