"""
Achievement catalog and per-tutor achievement progress.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tutorboard.core.database.base import Base, IdMixin, TimestampMixin


class Achievement(Base, TimestampMixin):
    """
    Achievement definition. Read-only at runtime.
    """

    __tablename__ = "achievements"
    __table_args__ = (
        Index("ix_achievements_condition_type_value", "condition_type", "condition_value"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    kind: Mapped[str] = mapped_column(String(32), nullable=False, default="milestone")

    condition_type: Mapped[str] = mapped_column(String(64), nullable=False)
    condition_value: Mapped[float] = mapped_column(Float, nullable=False)
    condition_timeframe: Mapped[Optional[str]] = mapped_column(String(32))

    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="common")


class TutorAchievement(Base, IdMixin, TimestampMixin):
    """
    Progress of one tutor toward one achievement.

    `unlocked_at` is a one-way latch: once set it is never cleared.
    """

    __tablename__ = "tutor_achievements"
    __table_args__ = (
        UniqueConstraint(
            "tutor_id", "achievement_id", name="uq_tutor_achievements_tutor_achievement"
        ),
    )

    tutor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    achievement_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("achievements.id", ondelete="CASCADE"),
        nullable=False,
    )

    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    unlocked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
