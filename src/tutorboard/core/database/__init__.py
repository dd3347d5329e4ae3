"""Database infrastructure: ORM base, engine and session management."""

from tutorboard.core.database.base import (
    Base,
    IdMixin,
    JSONType,
    TimestampMixin,
    utc_now,
)
from tutorboard.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "IdMixin",
    "JSONType",
    "TimestampMixin",
    "utc_now",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
