"""
Achievement tier aggregation.

Pure functions over achievement definitions and a tutor's progress:

- `evaluate_progress`: decide what to store for one definition given a new
  metric value (latching unlocks, clamping unlocked progress).
- `group_achievements_by_tier`: collapse progress items into one tier
  ladder view per condition type.
- `compute_stats`: unlocked counts and XP totals.

Tier ladders come from `TierConfig` (static thresholds per condition type),
not from the definitions themselves. Condition types without a ladder get
an empty one and a progress percent of 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from tutorboard.domain.models.achievement import (
    TIER_NAMES,
    AchievementDefinition,
    AchievementProgressItem,
    AchievementStats,
    AchievementTierGroup,
    Rarity,
    TierThreshold,
    TutorAchievementProgress,
)
from tutorboard.domain.models.base import DomainValidationError


# ============================================================================
# Tier configuration
# ============================================================================


@dataclass(frozen=True)
class GroupMeta:
    title: str
    description: str = ""
    icon: str = ""


@dataclass(frozen=True)
class TierConfig:
    """
    Static tier ladders and display metadata keyed by condition type.

    Each ladder is strictly ascending, positive, and at most as long as the
    list of tier names.
    """

    ladders: Mapping[str, Tuple[TierThreshold, ...]] = field(default_factory=dict)
    groups: Mapping[str, GroupMeta] = field(default_factory=dict)

    @staticmethod
    def build_ladder(condition_type: str, values: Sequence[Any]) -> Tuple[TierThreshold, ...]:
        if len(values) > len(TIER_NAMES):
            raise DomainValidationError(
                f"tier ladder for '{condition_type}' has {len(values)} thresholds; "
                f"at most {len(TIER_NAMES)} are supported",
                field="tiers",
            )

        ladder: List[TierThreshold] = []
        previous: Optional[float] = None
        for name, raw in zip(TIER_NAMES, values):
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise DomainValidationError(
                    f"tier threshold for '{condition_type}' must be a number, got {raw!r}",
                    field="tiers",
                )
            value = float(raw)
            if not math.isfinite(value) or value <= 0:
                raise DomainValidationError(
                    f"tier threshold for '{condition_type}' must be positive, got {raw!r}",
                    field="tiers",
                )
            if previous is not None and value <= previous:
                raise DomainValidationError(
                    f"tier ladder for '{condition_type}' must be strictly ascending",
                    field="tiers",
                )
            ladder.append(TierThreshold(name=name, value=value))
            previous = value
        return tuple(ladder)

    @classmethod
    def from_config(
        cls,
        tiers: Optional[Mapping[str, Sequence[Any]]],
        groups: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> "TierConfig":
        ladders = {
            str(condition_type): cls.build_ladder(str(condition_type), values or ())
            for condition_type, values in (tiers or {}).items()
        }
        metas = {
            str(condition_type): GroupMeta(
                title=str(meta.get("title", condition_type)),
                description=str(meta.get("description", "")),
                icon=str(meta.get("icon", "")),
            )
            for condition_type, meta in (groups or {}).items()
            if isinstance(meta, Mapping)
        }
        return cls(ladders=ladders, groups=metas)

    def ladder_for(self, condition_type: str) -> Tuple[TierThreshold, ...]:
        return self.ladders.get(condition_type, ())

    def meta_for(self, condition_type: str) -> GroupMeta:
        return self.groups.get(condition_type) or GroupMeta(title=condition_type)


# ============================================================================
# Progress evaluation
# ============================================================================


@dataclass(frozen=True)
class ProgressDecision:
    definition: AchievementDefinition
    progress: float
    unlocked_at: Optional[datetime]
    newly_unlocked: bool


def evaluate_progress(
    definition: AchievementDefinition,
    existing: Optional[TutorAchievementProgress],
    value: float,
    now: datetime,
) -> Optional[ProgressDecision]:
    """
    Decide the stored state for `definition` after observing `value`.

    Returns None when the achievement is already unlocked; unlocks are a
    one-way latch. On unlock the stored progress is clamped to the
    definition's `condition_value`.
    """
    if existing is not None and existing.is_unlocked:
        return None

    if value >= definition.condition_value:
        return ProgressDecision(
            definition=definition,
            progress=definition.condition_value,
            unlocked_at=now,
            newly_unlocked=True,
        )

    return ProgressDecision(
        definition=definition,
        progress=value,
        unlocked_at=None,
        newly_unlocked=False,
    )


# ============================================================================
# Grouping
# ============================================================================


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _progress_percent(highest: float, ladder: Sequence[TierThreshold], index: int) -> float:
    if not ladder:
        return 0.0
    if index == len(ladder) - 1:
        return 100.0
    if index < 0:
        return highest * 100.0 / ladder[0].value

    lower = ladder[index].value
    upper = ladder[index + 1].value
    return (highest - lower) * 100.0 / (upper - lower)


def _progress_text(highest: float, ladder: Sequence[TierThreshold], index: int) -> str:
    if not ladder:
        return _format_number(highest)
    target = ladder[min(index + 1, len(ladder) - 1)].value
    return f"{_format_number(highest)}/{_format_number(target)}"


def build_tier_group(
    condition_type: str,
    items: Sequence[AchievementProgressItem],
    tier_config: TierConfig,
) -> AchievementTierGroup:
    ladder = tier_config.ladder_for(condition_type)
    meta = tier_config.meta_for(condition_type)

    highest = max((item.progress for item in items), default=0.0)

    index = -1
    for position, tier in enumerate(ladder):
        if tier.value <= highest:
            index = position

    definitions = tuple(
        sorted((item.definition for item in items), key=lambda d: d.condition_value)
    )
    total_xp = sum(d.xp_reward for d in definitions if d.condition_value <= highest)

    return AchievementTierGroup(
        condition_type=condition_type,
        title=meta.title,
        description=meta.description,
        icon=meta.icon or (definitions[0].icon if definitions else ""),
        tiers=ladder,
        highest_progress=highest,
        current_tier_index=index,
        current_tier=ladder[index] if index >= 0 else None,
        next_tier=ladder[index + 1] if index + 1 < len(ladder) else None,
        progress_percent=_progress_percent(highest, ladder, index),
        progress_text=_progress_text(highest, ladder, index),
        total_xp=total_xp,
        definitions=definitions,
    )


def group_achievements_by_tier(
    items: Iterable[AchievementProgressItem],
    tier_config: Optional[TierConfig] = None,
) -> List[AchievementTierGroup]:
    """
    One tier group per condition type, in order of first appearance.

    Never raises for well-formed items.
    """
    config = tier_config or TierConfig()

    grouped: Dict[str, List[AchievementProgressItem]] = {}
    for item in items:
        grouped.setdefault(item.condition_type, []).append(item)

    return [
        build_tier_group(condition_type, group_items, config)
        for condition_type, group_items in grouped.items()
    ]


def compute_stats(items: Iterable[AchievementProgressItem]) -> AchievementStats:
    by_rarity: Dict[str, int] = {rarity.value: 0 for rarity in Rarity}
    total_unlocked = 0
    total_xp = 0

    for item in items:
        if not item.is_unlocked:
            continue
        total_unlocked += 1
        total_xp += item.definition.xp_reward
        by_rarity[item.definition.rarity.value] += 1

    return AchievementStats(
        total_unlocked=total_unlocked,
        total_xp_earned=total_xp,
        by_rarity=by_rarity,
    )
