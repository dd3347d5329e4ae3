"""
Onboarding Service
==================

Purpose
-------
Tracks tutor progress through the ordered onboarding checklist.

Domain
------
- Complete onboarding steps in strict catalog order
- Report onboarding status for any tutor, including ones never seen before
- Detect full onboarding completion
- Project remaining steps and estimated time left

Design
------
- Catalog and minutes-per-step come from ConfigManager
  (`onboarding.steps`, `onboarding.minutes_per_step`).
- Writes run in one transaction that reads the tutor row FOR UPDATE.
  Updates are also conditional on the row `version` that was read, which
  serializes writers on databases that ignore row locks (SQLite).
- A concurrent write that wins (a newer version, or the unique `tutor_id`
  on a first insert) turns the losing call into `StepAlreadyCompletedError`.
  Other integrity errors propagate unchanged.
- Domain events (`onboarding.step_completed`, `onboarding.completed`) and
  the audit record are published after the transaction commits.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from tutorboard.core.database.service import DatabaseService
from tutorboard.core.exceptions import ConfigurationError
from tutorboard.core.infra.audit_logger import AuditLogger
from tutorboard.core.logging.logger import get_logger
from tutorboard.database.models.progression.onboarding import TutorOnboarding
from tutorboard.domain.models.base import DomainValidationError
from tutorboard.domain.models.onboarding import (
    OnboardingCatalog,
    OnboardingProgress,
    OnboardingStatus,
    ProgressProjection,
)
from tutorboard.modules.onboarding.tracker import (
    DEFAULT_MINUTES_PER_STEP,
    OnboardingStepTracker,
)
from tutorboard.modules.shared.base_repository import BaseRepository
from tutorboard.modules.shared.base_service import BaseService
from tutorboard.modules.shared.exceptions import (
    InvalidStepError,
    StepAlreadyCompletedError,
    TutorboardDomainException,
)
from tutorboard.modules.shared.validators import validate_tutor_id

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from tutorboard.core.config.manager import ConfigManager
    from tutorboard.core.event.bus import EventBus


# ============================================================================
# Repository
# ============================================================================


class TutorOnboardingRepository(BaseRepository[TutorOnboarding]):
    async def find_by_tutor(
        self, session: AsyncSession, tutor_id: str, for_update: bool = False
    ) -> Optional[TutorOnboarding]:
        return await self.find_one_where(
            session,
            TutorOnboarding.tutor_id == tutor_id,
            for_update=for_update,
        )

    async def exists_for_tutor(self, session: AsyncSession, tutor_id: str) -> bool:
        return await self.exists_where(session, TutorOnboarding.tutor_id == tutor_id)

    async def update_if_version(
        self,
        session: AsyncSession,
        row: TutorOnboarding,
        values: Dict[str, Any],
    ) -> bool:
        """
        Write `values` only if the row still carries the version it was read
        with, bumping the version.

        Returns:
            False when another transaction wrote the row in between
        """
        stmt = (
            update(TutorOnboarding)
            .where(
                TutorOnboarding.id == row.id,
                TutorOnboarding.version == row.version,
            )
            .values(**values, version=row.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)

        self.log.debug(
            "Repository.update_if_version: TutorOnboarding",
            extra={
                "tutor_id": row.tutor_id,
                "expected_version": row.version,
                "affected": result.rowcount,
            },
        )
        return result.rowcount == 1


# ============================================================================
# OnboardingService
# ============================================================================


class OnboardingService(BaseService):
    """
    Service for tutor onboarding progression.

    Public Methods
    --------------
    - complete_step() -> Mark the next onboarding step as completed
    - get_onboarding_status() -> Current status (never fails for unknown tutors)
    - is_onboarding_complete() -> Whether every catalog step is done
    - track_progress() -> Remaining steps and estimated minutes left
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        tracker: Optional[OnboardingStepTracker] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)

        self._tracker = tracker or self._build_tracker()
        self._onboarding_repo = TutorOnboardingRepository(
            model_class=TutorOnboarding,
            logger=get_logger(f"{__name__}.TutorOnboardingRepository"),
        )

    def _build_tracker(self) -> OnboardingStepTracker:
        """
        Load the step catalog from configuration.

        Raises:
            ConfigurationError: If the catalog is missing or malformed
        """
        entries = self.get_config("onboarding.steps", required=True)
        minutes = self.get_config(
            "onboarding.minutes_per_step", default=DEFAULT_MINUTES_PER_STEP
        )

        try:
            catalog = OnboardingCatalog.from_config(entries)
            return OnboardingStepTracker(catalog, minutes_per_step=int(minutes))
        except (DomainValidationError, TypeError, ValueError) as exc:
            raise ConfigurationError("onboarding.steps", str(exc)) from exc

    @property
    def tracker(self) -> OnboardingStepTracker:
        return self._tracker

    @property
    def catalog(self) -> OnboardingCatalog:
        return self._tracker.catalog

    async def _load_progress(self, tutor_id: str) -> OnboardingProgress:
        async with DatabaseService.get_session() as session:
            row = await self._onboarding_repo.find_by_tutor(session, tutor_id)
            if row is None:
                return self._tracker.new_progress(tutor_id)
            return OnboardingProgress.from_db(row, self.catalog)

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_onboarding_status(self, tutor_id: str) -> OnboardingStatus:
        """
        Current onboarding status.

        Unknown tutors get an empty status whose current step is the first
        catalog step.
        """
        tutor_id = validate_tutor_id(tutor_id)

        async with self.operation_context("get_onboarding_status", tutor_id):
            self.log_operation("get_onboarding_status", tutor_id=tutor_id)
            progress = await self._load_progress(tutor_id)
            return self._tracker.status(progress)

    async def is_onboarding_complete(self, tutor_id: str) -> bool:
        tutor_id = validate_tutor_id(tutor_id)

        async with self.operation_context("is_onboarding_complete", tutor_id):
            progress = await self._load_progress(tutor_id)
            return self._tracker.is_complete(progress)

    async def track_progress(self, tutor_id: str) -> ProgressProjection:
        """
        Project the remaining work.

        `estimated_time_remaining` is in minutes.
        """
        tutor_id = validate_tutor_id(tutor_id)

        async with self.operation_context("track_progress", tutor_id):
            self.log_operation("track_progress", tutor_id=tutor_id)
            progress = await self._load_progress(tutor_id)
            return self._tracker.project(progress)

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def complete_step(
        self,
        tutor_id: str,
        step_id: Any,
        context: Optional[str] = None,
    ) -> OnboardingStatus:
        """
        Mark an onboarding step as completed.

        This is a **write operation** using get_transaction() with
        pessimistic locking.

        Args:
            tutor_id: Tutor identifier
            step_id: Onboarding step identifier
            context: Optional caller context for the audit trail

        Returns:
            The updated OnboardingStatus

        Raises:
            ValidationError: If tutor_id is malformed
            InvalidStepError: If step_id is not in the catalog
            StepAlreadyCompletedError: If the step was already completed
            StepOutOfOrderError: If an earlier step is still incomplete
        """
        tutor_id = validate_tutor_id(tutor_id)

        async with self.operation_context("complete_step", tutor_id):
            self.log_operation("complete_step", tutor_id=tutor_id, step_id=step_id)

            if not isinstance(step_id, str) or step_id not in self.catalog:
                error = InvalidStepError(str(step_id))
                self.log.info(
                    "Onboarding step rejected",
                    extra={
                        "tutor_id": tutor_id,
                        "step_id": repr(step_id),
                        "error_code": error.error_code,
                    },
                )
                raise error

            try:
                progress, status = await self._complete_step_transaction(
                    tutor_id, step_id
                )
            except TutorboardDomainException as exc:
                self.log.info(
                    "Onboarding step rejected",
                    extra={
                        "tutor_id": tutor_id,
                        "step_id": step_id,
                        "error_code": exc.error_code,
                    },
                )
                raise
            except Exception as exc:
                self.log_error("complete_step", exc, tutor_id=tutor_id, step_id=step_id)
                raise

            await AuditLogger.log(
                tutor_id=tutor_id,
                transaction_type="onboarding_step_completed",
                details={
                    "step_id": step_id,
                    "percent_complete": status.percent_complete,
                    "is_complete": status.is_complete,
                },
                context=context or "onboarding",
                bus=self.event_bus,
            )
            await self.publish_domain_events(progress.clear_domain_events())

            self.log.info(
                f"Onboarding step '{step_id}' completed for tutor {tutor_id}",
                extra={
                    "tutor_id": tutor_id,
                    "step_id": step_id,
                    "percent_complete": status.percent_complete,
                    "is_complete": status.is_complete,
                },
            )
            return status

    async def _complete_step_transaction(
        self, tutor_id: str, step_id: str
    ) -> tuple[OnboardingProgress, OnboardingStatus]:
        now = datetime.now(timezone.utc)

        # Every writer that passes the tracker from the same row state
        # completed the same step: only the current step is accepted. A
        # write that loses to a concurrent one is therefore a repeat.
        try:
            async with DatabaseService.get_transaction() as session:
                row = await self._onboarding_repo.find_by_tutor(
                    session, tutor_id, for_update=True
                )
                if row is None:
                    progress = self._tracker.new_progress(tutor_id)
                else:
                    progress = OnboardingProgress.from_db(row, self.catalog)

                status = self._tracker.complete_step(progress, step_id, now)
                updates = progress.to_db_updates()

                if row is None:
                    self._onboarding_repo.add(
                        session, TutorOnboarding(tutor_id=tutor_id, **updates)
                    )
                    await session.flush()
                elif not await self._onboarding_repo.update_if_version(
                    session, row, {**updates, "updated_at": now}
                ):
                    raise StepAlreadyCompletedError(step_id)
        except IntegrityError as exc:
            if not await self._tutor_row_exists(tutor_id):
                raise
            raise StepAlreadyCompletedError(step_id) from exc

        return progress, status

    async def _tutor_row_exists(self, tutor_id: str) -> bool:
        async with DatabaseService.get_session() as session:
            return await self._onboarding_repo.exists_for_tutor(session, tutor_id)
