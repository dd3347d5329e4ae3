"""
Database Models Package
=======================

SQLAlchemy ORM models for tutorboard. Models are schema-only:

- Use Mapped[] syntax with mapped_column()
- Inherit from the shared mixins (IdMixin, TimestampMixin)
- JSON columns are JSONB on PostgreSQL

Importing this package registers every table on `Base.metadata`.
"""

from tutorboard.core.database.base import Base

from .progression import (
    Achievement,
    GamificationPoints,
    TutorAchievement,
    TutorBadge,
    TutorOnboarding,
)

__all__ = [
    "Base",
    "Achievement",
    "GamificationPoints",
    "TutorAchievement",
    "TutorBadge",
    "TutorOnboarding",
]
