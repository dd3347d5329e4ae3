"""
Onboarding domain models.

Purpose
-------
Represent the tutor onboarding checklist and a tutor's position in it:

- `OnboardingStep` / `OnboardingCatalog`: the immutable, totally ordered
  step definitions.
- `OnboardingProgress`: aggregate root for one tutor's completed steps.
  Records the transition and emits domain events; ordering rules are
  enforced by `OnboardingStepTracker` before a transition is applied.
- `OnboardingStatus` / `ProgressProjection`: frozen read models handed to
  callers.

Invariants
----------
- Catalog orders are unique and contiguous from 0.
- `completed_steps` only grows and keeps completion order.
- `started_at` is set on the first completion and never changes afterwards.
- `completed_at` is set when the last catalog step is completed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from tutorboard.domain.models.base import (
    AggregateRoot,
    DomainValidationError,
    ValueObject,
    validate_not_empty,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def percent_of(done: int, total: int) -> int:
    """Integer percentage rounded half-up. 1 of 3 gives 33."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


# ============================================================================
# CATALOG
# ============================================================================


@dataclass(frozen=True)
class OnboardingStep(ValueObject):
    id: str
    order: int
    title: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        validate_not_empty(self.id, "id")
        if self.order < 0:
            raise DomainValidationError(
                f"step order must be non-negative, got {self.order}", field="order"
            )


@dataclass(frozen=True)
class OnboardingCatalog(ValueObject):
    """
    Ordered, immutable set of onboarding steps.

    Rejects empty catalogs, duplicate ids, duplicate orders and gaps in
    the order sequence.
    """

    steps: Tuple[OnboardingStep, ...]
    _by_id: Dict[str, OnboardingStep] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.steps, key=lambda step: step.order))
        object.__setattr__(self, "steps", ordered)
        self._validate()
        object.__setattr__(self, "_by_id", {step.id: step for step in ordered})

    def _validate(self) -> None:
        if not self.steps:
            raise DomainValidationError("onboarding catalog has no steps", field="steps")

        seen_ids = set()
        for expected_order, step in enumerate(self.steps):
            if step.id in seen_ids:
                raise DomainValidationError(
                    f"duplicate onboarding step id '{step.id}'", field="steps"
                )
            seen_ids.add(step.id)
            if step.order != expected_order:
                raise DomainValidationError(
                    f"onboarding step orders must be contiguous from 0; "
                    f"expected {expected_order}, got {step.order} for '{step.id}'",
                    field="steps",
                )

    @classmethod
    def from_config(cls, entries: Iterable[Any]) -> "OnboardingCatalog":
        """
        Build a catalog from config entries.

        Entries are either plain step ids or mappings with `id`, `title`,
        `description` and an optional explicit `order`. Without `order`,
        list position is used.
        """
        steps: List[OnboardingStep] = []
        for position, entry in enumerate(entries):
            if isinstance(entry, str):
                steps.append(OnboardingStep(id=entry, order=position))
                continue
            if not isinstance(entry, Mapping):
                raise DomainValidationError(
                    f"onboarding step entry must be a string or mapping, got "
                    f"{type(entry).__name__}",
                    field="steps",
                )
            steps.append(
                OnboardingStep(
                    id=str(entry.get("id", "")),
                    order=int(entry.get("order", position)),
                    title=str(entry.get("title", "")),
                    description=str(entry.get("description", "")),
                )
            )
        return cls(steps=tuple(steps))

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[OnboardingStep]:
        return iter(self.steps)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._by_id

    def get(self, step_id: str) -> Optional[OnboardingStep]:
        return self._by_id.get(step_id)

    @property
    def step_ids(self) -> Tuple[str, ...]:
        return tuple(step.id for step in self.steps)


# ============================================================================
# READ MODELS
# ============================================================================


@dataclass(frozen=True)
class OnboardingStatus:
    """Snapshot of a tutor's onboarding state."""

    tutor_id: str
    completed_steps: Tuple[str, ...]
    current_step: Optional[str]
    total_steps: int
    percent_complete: int
    is_complete: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tutor_id": self.tutor_id,
            "completed_steps": list(self.completed_steps),
            "current_step": self.current_step,
            "total_steps": self.total_steps,
            "percent_complete": self.percent_complete,
            "is_complete": self.is_complete,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass(frozen=True)
class ProgressProjection:
    current_step: Optional[str]
    completed_steps: Tuple[str, ...]
    remaining_steps: Tuple[str, ...]
    percent_complete: int
    estimated_time_remaining: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_step": self.current_step,
            "completed_steps": list(self.completed_steps),
            "remaining_steps": list(self.remaining_steps),
            "percent_complete": self.percent_complete,
            "estimated_time_remaining": self.estimated_time_remaining,
        }


# ============================================================================
# AGGREGATE
# ============================================================================


class OnboardingProgress(AggregateRoot):
    """
    One tutor's onboarding progress against a catalog.

    Identity is the tutor id. `record_completion` applies an already
    validated transition; callers use `OnboardingStepTracker` to validate.
    """

    def __init__(
        self,
        tutor_id: str,
        catalog: OnboardingCatalog,
        completed_steps: Iterable[str] = (),
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> None:
        super().__init__(tutor_id)
        self._catalog = catalog
        self._completed: List[str] = list(dict.fromkeys(completed_steps))
        self._started_at = _as_utc(started_at)
        self._completed_at = _as_utc(completed_at)

    @classmethod
    def from_db(cls, row: Any, catalog: OnboardingCatalog) -> "OnboardingProgress":
        """Build from a `TutorOnboarding` row."""
        return cls(
            tutor_id=row.tutor_id,
            catalog=catalog,
            completed_steps=row.completed_steps or (),
            started_at=row.started_at,
            completed_at=row.completed_at,
        )

    def to_db_updates(self) -> Dict[str, Any]:
        return {
            "completed_steps": list(self._completed),
            "started_at": self._started_at,
            "completed_at": self._completed_at,
        }

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def catalog(self) -> OnboardingCatalog:
        return self._catalog

    @property
    def completed_steps(self) -> Tuple[str, ...]:
        return tuple(self._completed)

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def completed_at(self) -> Optional[datetime]:
        return self._completed_at

    def has_completed(self, step_id: str) -> bool:
        return step_id in self._completed

    def remaining_steps(self) -> Tuple[str, ...]:
        done = set(self._completed)
        return tuple(step.id for step in self._catalog if step.id not in done)

    @property
    def current_step(self) -> Optional[str]:
        """Lowest-order incomplete step, or None once everything is done."""
        remaining = self.remaining_steps()
        return remaining[0] if remaining else None

    @property
    def is_complete(self) -> bool:
        return not self.remaining_steps()

    @property
    def percent_complete(self) -> int:
        total = len(self._catalog)
        return percent_of(total - len(self.remaining_steps()), total)

    def to_status(self) -> OnboardingStatus:
        return OnboardingStatus(
            tutor_id=self.id,
            completed_steps=self.completed_steps,
            current_step=self.current_step,
            total_steps=len(self._catalog),
            percent_complete=self.percent_complete,
            is_complete=self.is_complete,
            started_at=self._started_at,
            completed_at=self._completed_at,
        )

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def record_completion(self, step: OnboardingStep, now: datetime) -> None:
        """
        Append `step` to the completed list.

        Emits `onboarding.step_completed`, and `onboarding.completed` when
        this completion covers the whole catalog.
        """
        if self.has_completed(step.id):
            raise DomainValidationError(
                f"step '{step.id}' already recorded", field="completed_steps"
            )

        now = _as_utc(now)
        self._completed.append(step.id)
        if self._started_at is None:
            self._started_at = now

        self.add_domain_event(
            "onboarding.step_completed",
            {
                "tutor_id": self.id,
                "step_id": step.id,
                "step_order": step.order,
                "completed_count": len(self._completed),
                "total_steps": len(self._catalog),
            },
        )

        if self.is_complete and self._completed_at is None:
            self._completed_at = now
            self.add_domain_event(
                "onboarding.completed",
                {
                    "tutor_id": self.id,
                    "completed_at": now.isoformat(),
                    "total_steps": len(self._catalog),
                },
            )
