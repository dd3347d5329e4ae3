"""
Shared building blocks for tutorboard service modules: the service and
repository base classes, domain exceptions and input validators.
"""

from .base_repository import BaseRepository
from .base_service import BaseService
from .exceptions import (
    InvalidOperationError,
    InvalidStepError,
    StepAlreadyCompletedError,
    StepOutOfOrderError,
    TutorboardDomainException,
    ValidationError,
)

__all__ = [
    "BaseRepository",
    "BaseService",
    "InvalidOperationError",
    "InvalidStepError",
    "StepAlreadyCompletedError",
    "StepOutOfOrderError",
    "TutorboardDomainException",
    "ValidationError",
]
