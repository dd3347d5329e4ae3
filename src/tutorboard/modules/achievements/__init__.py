"""Tutor achievements: progress recording and tier aggregation."""

from .aggregator import (
    GroupMeta,
    ProgressDecision,
    TierConfig,
    compute_stats,
    evaluate_progress,
    group_achievements_by_tier,
)
from .service import (
    AchievementRepository,
    AchievementService,
    TutorAchievementRepository,
)

__all__ = [
    "AchievementRepository",
    "AchievementService",
    "GroupMeta",
    "ProgressDecision",
    "TierConfig",
    "TutorAchievementRepository",
    "compute_stats",
    "evaluate_progress",
    "group_achievements_by_tier",
]
