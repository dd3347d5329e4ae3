"""
Badges and gamification point ledger.
Schema only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tutorboard.core.database.base import Base, IdMixin, TimestampMixin, utc_now


class TutorBadge(Base, IdMixin, TimestampMixin):
    __tablename__ = "tutor_badges"
    __table_args__ = (
        UniqueConstraint("tutor_id", "badge_type", name="uq_tutor_badges_tutor_badge"),
    )

    tutor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    badge_type: Mapped[str] = mapped_column(String(64), nullable=False)
    badge_name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


class GamificationPoints(Base, IdMixin, TimestampMixin):
    """
    Append-only points ledger. A tutor's balance is the sum of `points`.
    """

    __tablename__ = "gamification_points"

    tutor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
