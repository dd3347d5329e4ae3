"""
Onboarding completion reward.

Listens for `onboarding.completed` and grants the configured badge plus a
points ledger entry. The grant is idempotent: the badge row is unique per
(tutor, badge type) and points are only written together with a new badge.

Reward failures are logged and swallowed; onboarding has already committed
by the time the event fires.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tutorboard.core.database.service import DatabaseService
from tutorboard.core.event.types import EventPayload, ListenerPriority
from tutorboard.core.exceptions import ConfigurationError
from tutorboard.core.infra.audit_logger import AuditLogger
from tutorboard.core.logging.logger import get_logger
from tutorboard.database.models.progression.rewards import GamificationPoints, TutorBadge
from tutorboard.modules.shared.base_repository import BaseRepository
from tutorboard.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from tutorboard.core.config.manager import ConfigManager
    from tutorboard.core.event.bus import EventBus

LISTENER_ID = "onboarding.completion_reward"

REWARD_FIELDS = ("badge_type", "badge_name", "description", "icon", "points")


class OnboardingRewardService(BaseService):
    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._badge_repo = BaseRepository(
            model_class=TutorBadge,
            logger=get_logger(f"{__name__}.TutorBadgeRepository"),
        )
        self._points_repo = BaseRepository(
            model_class=GamificationPoints,
            logger=get_logger(f"{__name__}.GamificationPointsRepository"),
        )

    def reward_config(self) -> Dict[str, Any]:
        """
        Read `onboarding.completion_reward.*` from configuration.

        Raises:
            ConfigurationError: If any reward field is missing
        """
        return {
            field: self.get_config(f"onboarding.completion_reward.{field}", required=True)
            for field in REWARD_FIELDS
        }

    def register(self) -> str:
        """Subscribe the reward handler on this service's bus."""
        return self.event_bus.subscribe(
            "onboarding.completed",
            self.handle_onboarding_completed,
            priority=ListenerPriority.HIGH,
            identifier=LISTENER_ID,
        )

    async def handle_onboarding_completed(self, payload: EventPayload) -> Optional[bool]:
        tutor_id = payload.get("tutor_id")
        if not tutor_id:
            self.log.warning(
                "onboarding.completed event missing tutor_id",
                extra={"payload_keys": sorted(payload.keys())},
            )
            return None

        try:
            return await self.award_completion_reward(str(tutor_id))
        except (SQLAlchemyError, ConfigurationError) as exc:
            self.log_error("award_completion_reward", exc, tutor_id=tutor_id)
            return None

    async def award_completion_reward(self, tutor_id: str) -> bool:
        """
        Grant the completion badge and points once per tutor.

        Returns:
            True if the reward was granted now, False if it already existed
        """
        reward = self.reward_config()
        badge_type = str(reward["badge_type"])
        points = int(reward["points"])

        self.log_operation("award_completion_reward", tutor_id=tutor_id)

        try:
            async with DatabaseService.get_transaction() as session:
                already_awarded = await self._badge_repo.exists_where(
                    session,
                    TutorBadge.tutor_id == tutor_id,
                    TutorBadge.badge_type == badge_type,
                )
                if already_awarded:
                    self.log.info(
                        "Onboarding reward already granted",
                        extra={"tutor_id": tutor_id, "badge_type": badge_type},
                    )
                    return False

                self._badge_repo.add(
                    session,
                    TutorBadge(
                        tutor_id=tutor_id,
                        badge_type=badge_type,
                        badge_name=str(reward["badge_name"]),
                        description=str(reward["description"]),
                        icon=str(reward["icon"]),
                    ),
                )
                if points > 0:
                    self._points_repo.add(
                        session,
                        GamificationPoints(
                            tutor_id=tutor_id,
                            points=points,
                            reason=badge_type,
                            description=f"Badge earned: {reward['badge_name']}",
                        ),
                    )
                await session.flush()
        except IntegrityError:
            self.log.info(
                "Onboarding reward granted concurrently",
                extra={"tutor_id": tutor_id, "badge_type": badge_type},
            )
            return False

        await AuditLogger.log(
            tutor_id=tutor_id,
            transaction_type="onboarding_reward_granted",
            details={"badge_type": badge_type, "points": points},
            context="onboarding",
            bus=self.event_bus,
        )
        self.log.info(
            f"Onboarding reward granted to tutor {tutor_id}",
            extra={"tutor_id": tutor_id, "badge_type": badge_type, "points": points},
        )
        return True
