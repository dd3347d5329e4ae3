"""
Domain models for tutorboard.

Business rules for onboarding and achievements live here, separate from
the SQLAlchemy schema models in `tutorboard.database.models`.
"""

from tutorboard.domain.models.achievement import (
    AchievementDefinition,
    AchievementProgressItem,
    AchievementStats,
    AchievementTierGroup,
    ConditionType,
    Rarity,
    TierName,
    TierThreshold,
    TutorAchievementProgress,
)
from tutorboard.domain.models.base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    Entity,
    ValueObject,
)
from tutorboard.domain.models.onboarding import (
    OnboardingCatalog,
    OnboardingProgress,
    OnboardingStatus,
    OnboardingStep,
    ProgressProjection,
)

__all__ = [
    "AchievementDefinition",
    "AchievementProgressItem",
    "AchievementStats",
    "AchievementTierGroup",
    "ConditionType",
    "Rarity",
    "TierName",
    "TierThreshold",
    "TutorAchievementProgress",
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Entity",
    "ValueObject",
    "OnboardingCatalog",
    "OnboardingProgress",
    "OnboardingStatus",
    "OnboardingStep",
    "ProgressProjection",
]
