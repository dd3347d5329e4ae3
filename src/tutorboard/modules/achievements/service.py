"""
Achievement Service
===================

Purpose
-------
Records tutor progress toward achievements and serves the tier views the
dashboard renders.

Domain
------
- Record a metric value for a condition type and unlock every definition
  it satisfies
- Merge the achievement catalog with one tutor's progress
- Group progress into tier ladders per condition type
- Summarize unlocked achievements and XP

Design
------
- Definitions are read-only at runtime and cached per service instance
  (`invalidate_catalog()` drops the cache).
- Progress writes are single-statement upserts keyed on
  `(tutor_id, achievement_id)`; the update branch is guarded by
  `unlocked_at IS NULL`, so an unlock can never be cleared or repeated.
- `achievement.unlocked` events and audit records are published after
  the transaction commits.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from tutorboard.core.database.service import DatabaseService
from tutorboard.core.exceptions import ConfigurationError
from tutorboard.core.infra.audit_logger import AuditLogger
from tutorboard.core.logging.logger import get_logger
from tutorboard.database.models.progression.achievement import (
    Achievement,
    TutorAchievement,
)
from tutorboard.domain.models.achievement import (
    AchievementDefinition,
    AchievementProgressItem,
    AchievementStats,
    AchievementTierGroup,
    TutorAchievementProgress,
)
from tutorboard.domain.models.base import DomainValidationError
from tutorboard.modules.achievements.aggregator import (
    TierConfig,
    compute_stats,
    evaluate_progress,
    group_achievements_by_tier,
)
from tutorboard.modules.shared.base_repository import BaseRepository
from tutorboard.modules.shared.base_service import BaseService
from tutorboard.modules.shared.validators import (
    validate_identifier,
    validate_progress_value,
    validate_tutor_id,
)

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from tutorboard.core.config.manager import ConfigManager
    from tutorboard.core.event.bus import EventBus


# ============================================================================
# Repositories
# ============================================================================


class AchievementRepository(BaseRepository[Achievement]):
    async def list_definitions(self, session: AsyncSession) -> List[Achievement]:
        return await self.find_many_where(
            session,
            order_by=(Achievement.xp_reward.asc(), Achievement.id.asc()),
        )


class TutorAchievementRepository(BaseRepository[TutorAchievement]):
    async def find_for_tutor(
        self,
        session: AsyncSession,
        tutor_id: str,
        achievement_ids: Optional[Sequence[str]] = None,
    ) -> List[TutorAchievement]:
        conditions = [TutorAchievement.tutor_id == tutor_id]
        if achievement_ids is not None:
            conditions.append(TutorAchievement.achievement_id.in_(list(achievement_ids)))
        return await self.find_many_where(session, *conditions)

    async def upsert_progress(
        self,
        session: AsyncSession,
        *,
        tutor_id: str,
        achievement_id: str,
        progress: float,
        unlocked_at: Optional[datetime],
        now: datetime,
    ) -> int:
        """Write progress unless the existing row is already unlocked."""
        return await self.upsert(
            session,
            {
                "tutor_id": tutor_id,
                "achievement_id": achievement_id,
                "progress": progress,
                "unlocked_at": unlocked_at,
                "created_at": now,
                "updated_at": now,
            },
            conflict_columns=("tutor_id", "achievement_id"),
            update_columns=("progress", "unlocked_at", "updated_at"),
            where=TutorAchievement.unlocked_at.is_(None),
        )


# ============================================================================
# AchievementService
# ============================================================================


class AchievementService(BaseService):
    """
    Service for tutor achievements.

    Public Methods
    --------------
    - check_achievement_progress() -> Record a metric value, return new unlocks
    - get_tutor_achievements() -> Catalog merged with the tutor's progress
    - get_achievement_tiers() -> Tier ladder view per condition type
    - get_achievement_stats() -> Unlocked counts and XP totals
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        tier_config: Optional[TierConfig] = None,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)

        self._tier_config = tier_config or self._build_tier_config()
        self._catalog: Optional[List[AchievementDefinition]] = None

        self._achievement_repo = AchievementRepository(
            model_class=Achievement,
            logger=get_logger(f"{__name__}.AchievementRepository"),
        )
        self._progress_repo = TutorAchievementRepository(
            model_class=TutorAchievement,
            logger=get_logger(f"{__name__}.TutorAchievementRepository"),
        )

    def _build_tier_config(self) -> TierConfig:
        try:
            return TierConfig.from_config(
                self.get_config("achievements.tiers", default={}),
                self.get_config("achievements.groups", default={}),
            )
        except (DomainValidationError, AttributeError, TypeError) as exc:
            raise ConfigurationError("achievements.tiers", str(exc)) from exc

    @property
    def tier_config(self) -> TierConfig:
        return self._tier_config

    # ========================================================================
    # Catalog
    # ========================================================================

    async def get_definitions(self) -> List[AchievementDefinition]:
        """All definitions ordered by XP reward (cached)."""
        if self._catalog is None:
            async with DatabaseService.get_session() as session:
                rows = await self._achievement_repo.list_definitions(session)
            self._catalog = [AchievementDefinition.from_db(row) for row in rows]
            self.log.debug(
                "Achievement catalog loaded",
                extra={"definition_count": len(self._catalog)},
            )
        return list(self._catalog)

    def invalidate_catalog(self) -> None:
        self._catalog = None

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def check_achievement_progress(
        self,
        tutor_id: str,
        condition_type: str,
        value: Any,
        context: Optional[str] = None,
    ) -> List[AchievementDefinition]:
        """
        Record `value` against every definition of `condition_type`.

        Already-unlocked definitions are skipped. Satisfied definitions are
        unlocked with progress clamped to their `condition_value`; the rest
        store `value` as progress.

        Returns:
            Exactly the definitions unlocked by this call

        Raises:
            ValidationError: If tutor_id or condition_type is malformed, or
                value is negative, non-finite or not a number
        """
        tutor_id = validate_tutor_id(tutor_id)
        condition_type = validate_identifier(condition_type, "condition_type")
        value = validate_progress_value(value)

        async with self.operation_context("check_achievement_progress", tutor_id):
            self.log_operation(
                "check_achievement_progress",
                tutor_id=tutor_id,
                condition_type=condition_type,
                value=value,
            )

            definitions = [
                definition
                for definition in await self.get_definitions()
                if definition.condition_type == condition_type
            ]
            if not definitions:
                return []

            now = datetime.now(timezone.utc)
            unlocked: List[AchievementDefinition] = []

            try:
                async with DatabaseService.get_transaction() as session:
                    rows = await self._progress_repo.find_for_tutor(
                        session, tutor_id, [d.id for d in definitions]
                    )
                    existing: Dict[str, TutorAchievementProgress] = {
                        row.achievement_id: TutorAchievementProgress.from_db(row)
                        for row in rows
                    }

                    for definition in definitions:
                        decision = evaluate_progress(
                            definition, existing.get(definition.id), value, now
                        )
                        if decision is None:
                            continue

                        affected = await self._progress_repo.upsert_progress(
                            session,
                            tutor_id=tutor_id,
                            achievement_id=definition.id,
                            progress=decision.progress,
                            unlocked_at=decision.unlocked_at,
                            now=now,
                        )
                        if decision.newly_unlocked and affected:
                            unlocked.append(definition)
            except Exception as exc:
                self.log_error(
                    "check_achievement_progress",
                    exc,
                    tutor_id=tutor_id,
                    condition_type=condition_type,
                )
                raise

            for definition in unlocked:
                await self._announce_unlock(tutor_id, definition, value, now, context)

            return unlocked

    async def _announce_unlock(
        self,
        tutor_id: str,
        definition: AchievementDefinition,
        value: float,
        unlocked_at: datetime,
        context: Optional[str],
    ) -> None:
        await AuditLogger.log(
            tutor_id=tutor_id,
            transaction_type="achievement_unlocked",
            details={
                "achievement_id": definition.id,
                "condition_type": definition.condition_type,
                "condition_value": definition.condition_value,
                "observed_value": value,
                "xp_reward": definition.xp_reward,
            },
            context=context or "achievements",
            bus=self.event_bus,
        )
        await self.emit_event(
            "achievement.unlocked",
            {
                "tutor_id": tutor_id,
                "achievement_id": definition.id,
                "title": definition.title,
                "rarity": definition.rarity.value,
                "xp_reward": definition.xp_reward,
                "unlocked_at": unlocked_at.isoformat(),
            },
        )
        self.log.info(
            f"Achievement '{definition.id}' unlocked for tutor {tutor_id}",
            extra={
                "tutor_id": tutor_id,
                "achievement_id": definition.id,
                "xp_reward": definition.xp_reward,
            },
        )

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_tutor_achievements(self, tutor_id: str) -> List[AchievementProgressItem]:
        """
        Every definition (ordered by XP reward) with the tutor's progress.

        Definitions the tutor has never touched report progress 0 and no
        unlock time.
        """
        tutor_id = validate_tutor_id(tutor_id)

        async with self.operation_context("get_tutor_achievements", tutor_id):
            definitions = await self.get_definitions()

            async with DatabaseService.get_session() as session:
                rows = await self._progress_repo.find_for_tutor(session, tutor_id)
            progress = {
                row.achievement_id: TutorAchievementProgress.from_db(row) for row in rows
            }

            items: List[AchievementProgressItem] = []
            for definition in definitions:
                stored = progress.get(definition.id)
                items.append(
                    AchievementProgressItem(
                        definition=definition,
                        progress=stored.progress if stored else 0.0,
                        unlocked_at=stored.unlocked_at if stored else None,
                    )
                )
            return items

    async def get_achievement_tiers(self, tutor_id: str) -> List[AchievementTierGroup]:
        items = await self.get_tutor_achievements(tutor_id)
        return group_achievements_by_tier(items, self._tier_config)

    async def get_achievement_stats(self, tutor_id: str) -> AchievementStats:
        items = await self.get_tutor_achievements(tutor_id)
        return compute_stats(items)
