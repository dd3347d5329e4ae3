"""Tutor onboarding: ordered step tracking and the completion reward."""

from .listener import OnboardingRewardService
from .service import OnboardingService, TutorOnboardingRepository
from .tracker import OnboardingStepTracker

__all__ = [
    "OnboardingRewardService",
    "OnboardingService",
    "OnboardingStepTracker",
    "TutorOnboardingRepository",
]
