"""
Achievement domain models.

Value objects for the achievement catalog, a tutor's progress toward each
definition, and the computed tier views consumed by the dashboard.

`condition_type` stays an open string on definitions so that data-driven
types degrade gracefully; `ConditionType` enumerates the known ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from tutorboard.domain.models.base import (
    DomainValidationError,
    ValueObject,
    validate_finite,
    validate_non_negative,
    validate_not_empty,
)


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @classmethod
    def from_value(cls, value: Any) -> "Rarity":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise DomainValidationError(
                f"unknown rarity '{value}'", field="rarity"
            ) from None


class ConditionType(str, Enum):
    SESSIONS_COUNT = "sessions_count"
    HOURS_TAUGHT = "hours_taught"
    STUDENT_RATING = "student_rating"
    STREAK_DAYS = "streak_days"


class TierName(str, Enum):
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    DIAMOND = "Diamond"


TIER_NAMES: Tuple[TierName, ...] = tuple(TierName)


@dataclass(frozen=True)
class TierThreshold(ValueObject):
    name: TierName
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name.value, "value": self.value}


@dataclass(frozen=True)
class AchievementDefinition(ValueObject):
    id: str
    title: str
    condition_type: str
    condition_value: float
    xp_reward: int = 0
    rarity: Rarity = Rarity.COMMON
    description: str = ""
    icon: str = ""
    kind: str = "milestone"
    condition_timeframe: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rarity", Rarity.from_value(self.rarity))
        self._validate()

    def _validate(self) -> None:
        validate_not_empty(self.id, "id")
        validate_not_empty(self.condition_type, "condition_type")
        validate_finite(self.condition_value, "condition_value")
        validate_non_negative(self.condition_value, "condition_value")
        validate_non_negative(self.xp_reward, "xp_reward")

    @classmethod
    def from_db(cls, row: Any) -> "AchievementDefinition":
        """Build from an `Achievement` row."""
        return cls(
            id=row.id,
            title=row.title,
            condition_type=row.condition_type,
            condition_value=float(row.condition_value),
            xp_reward=int(row.xp_reward),
            rarity=row.rarity,
            description=row.description or "",
            icon=row.icon or "",
            kind=row.kind or "milestone",
            condition_timeframe=row.condition_timeframe,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "kind": self.kind,
            "condition_type": self.condition_type,
            "condition_value": self.condition_value,
            "condition_timeframe": self.condition_timeframe,
            "xp_reward": self.xp_reward,
            "rarity": self.rarity.value,
        }


@dataclass(frozen=True)
class TutorAchievementProgress(ValueObject):
    """Stored progress row. `unlocked_at` never reverts to None once set."""

    tutor_id: str
    achievement_id: str
    progress: float = 0.0
    unlocked_at: Optional[datetime] = None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None

    @classmethod
    def from_db(cls, row: Any) -> "TutorAchievementProgress":
        unlocked_at = row.unlocked_at
        if unlocked_at is not None and unlocked_at.tzinfo is None:
            unlocked_at = unlocked_at.replace(tzinfo=timezone.utc)
        return cls(
            tutor_id=row.tutor_id,
            achievement_id=row.achievement_id,
            progress=float(row.progress or 0.0),
            unlocked_at=unlocked_at,
        )


@dataclass(frozen=True)
class AchievementProgressItem:
    """A definition merged with one tutor's progress toward it."""

    definition: AchievementDefinition
    progress: float = 0.0
    unlocked_at: Optional[datetime] = None

    @property
    def condition_type(self) -> str:
        return self.definition.condition_type

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_at is not None

    def to_dict(self) -> Dict[str, Any]:
        data = self.definition.to_dict()
        data.update(
            {
                "progress": self.progress,
                "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
                "is_unlocked": self.is_unlocked,
            }
        )
        return data


@dataclass(frozen=True)
class AchievementTierGroup:
    """Tier ladder view for one condition type."""

    condition_type: str
    title: str
    description: str
    icon: str
    tiers: Tuple[TierThreshold, ...]
    highest_progress: float
    current_tier_index: int
    current_tier: Optional[TierThreshold]
    next_tier: Optional[TierThreshold]
    progress_percent: float
    progress_text: str
    total_xp: int
    definitions: Tuple[AchievementDefinition, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "condition_type": self.condition_type,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "tiers": [tier.to_dict() for tier in self.tiers],
            "highest_progress": self.highest_progress,
            "current_tier_index": self.current_tier_index,
            "current_tier": self.current_tier.to_dict() if self.current_tier else None,
            "next_tier": self.next_tier.to_dict() if self.next_tier else None,
            "progress_percent": self.progress_percent,
            "progress_text": self.progress_text,
            "total_xp": self.total_xp,
            "definitions": [definition.to_dict() for definition in self.definitions],
        }


@dataclass(frozen=True)
class AchievementStats:
    total_unlocked: int
    total_xp_earned: int
    by_rarity: Mapping[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_unlocked": self.total_unlocked,
            "total_xp_earned": self.total_xp_earned,
            "by_rarity": dict(self.by_rarity),
        }
