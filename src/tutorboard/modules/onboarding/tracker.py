"""
Onboarding step tracker.

Pure ordering engine over an immutable `OnboardingCatalog`. No I/O: the
service loads an `OnboardingProgress`, hands it here, then persists it.

Transition checks run in a fixed order:

1. unknown step id          -> InvalidStepError
2. step already completed   -> StepAlreadyCompletedError
3. lower-order step missing -> StepOutOfOrderError
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from tutorboard.domain.models.onboarding import (
    OnboardingCatalog,
    OnboardingProgress,
    OnboardingStatus,
    ProgressProjection,
)
from tutorboard.modules.shared.exceptions import (
    InvalidStepError,
    StepAlreadyCompletedError,
    StepOutOfOrderError,
)

DEFAULT_MINUTES_PER_STEP = 5


class OnboardingStepTracker:
    def __init__(
        self,
        catalog: OnboardingCatalog,
        minutes_per_step: int = DEFAULT_MINUTES_PER_STEP,
    ) -> None:
        if minutes_per_step < 0:
            raise ValueError(f"minutes_per_step must be non-negative, got {minutes_per_step}")
        self._catalog = catalog
        self._minutes_per_step = minutes_per_step

    @property
    def catalog(self) -> OnboardingCatalog:
        return self._catalog

    @property
    def minutes_per_step(self) -> int:
        return self._minutes_per_step

    def new_progress(
        self,
        tutor_id: str,
        completed_steps: Iterable[str] = (),
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ) -> OnboardingProgress:
        return OnboardingProgress(
            tutor_id=tutor_id,
            catalog=self._catalog,
            completed_steps=completed_steps,
            started_at=started_at,
            completed_at=completed_at,
        )

    def complete_step(
        self,
        progress: OnboardingProgress,
        step_id: str,
        now: Optional[datetime] = None,
    ) -> OnboardingStatus:
        """
        Validate and apply completion of `step_id`.

        On error `progress` is left unchanged.
        """
        step = self._catalog.get(step_id)
        if step is None:
            raise InvalidStepError(step_id)

        if progress.has_completed(step_id):
            raise StepAlreadyCompletedError(step_id)

        missing = [
            earlier.id
            for earlier in self._catalog.steps[: step.order]
            if not progress.has_completed(earlier.id)
        ]
        if missing:
            raise StepOutOfOrderError(step_id, missing)

        progress.record_completion(step, now or datetime.now(timezone.utc))
        return progress.to_status()

    def status(self, progress: OnboardingProgress) -> OnboardingStatus:
        return progress.to_status()

    def is_complete(self, progress: OnboardingProgress) -> bool:
        return progress.is_complete

    def project(self, progress: OnboardingProgress) -> ProgressProjection:
        remaining = progress.remaining_steps()
        return ProgressProjection(
            current_step=progress.current_step,
            completed_steps=progress.completed_steps,
            remaining_steps=remaining,
            percent_complete=progress.percent_complete,
            estimated_time_remaining=len(remaining) * self._minutes_per_step,
        )
