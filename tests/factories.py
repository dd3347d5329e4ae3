"""Test data factories shared by unit and integration tests."""

from typing import Any

from tutorboard.domain.models.achievement import AchievementDefinition, Rarity


def make_definition(
    achievement_id: str,
    condition_type: str,
    condition_value: float,
    xp_reward: int = 0,
    rarity: Rarity = Rarity.COMMON,
    **kwargs: Any,
) -> AchievementDefinition:
    return AchievementDefinition(
        id=achievement_id,
        title=kwargs.pop("title", achievement_id.replace("_", " ").title()),
        condition_type=condition_type,
        condition_value=condition_value,
        xp_reward=xp_reward,
        rarity=rarity,
        **kwargs,
    )
