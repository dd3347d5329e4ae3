"""Tutor progression models: onboarding, achievements, rewards."""

from .achievement import Achievement, TutorAchievement
from .onboarding import TutorOnboarding
from .rewards import GamificationPoints, TutorBadge

__all__ = [
    "Achievement",
    "TutorAchievement",
    "TutorOnboarding",
    "TutorBadge",
    "GamificationPoints",
]
