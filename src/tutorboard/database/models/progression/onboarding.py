"""
TutorOnboarding: per-tutor onboarding step tracking.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tutorboard.core.database.base import Base, IdMixin, JSONType, TimestampMixin


class TutorOnboarding(Base, IdMixin, TimestampMixin):
    """
    Completed onboarding steps for one tutor, in completion order.
    """

    __tablename__ = "tutor_onboarding"
    __table_args__ = (
        Index(
            "ix_tutor_onboarding_steps_gin",
            "completed_steps",
            postgresql_using="gin",
        ),
    )

    tutor_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )

    completed_steps: Mapped[List[str]] = mapped_column(
        JSONType, nullable=False, default=list
    )

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Bumped on every write; updates are conditional on the value read.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
