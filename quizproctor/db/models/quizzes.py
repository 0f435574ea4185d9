from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from quizproctor.db.models.base import Base


class Quiz(Base):
    __tablename__ = "quizzes"
    __table_args__ = (
        CheckConstraint("xp_reward >= 0", name="ck_quizzes_xp_reward_non_negative"),
        CheckConstraint("required_level >= 1", name="ck_quizzes_required_level_positive"),
        CheckConstraint(
            "time_limit_seconds IS NULL OR time_limit_seconds >= 0",
            name="ck_quizzes_time_limit_non_negative",
        ),
        Index("idx_quizzes_career_path_level", "career_path_id", "required_level"),
        Index("idx_quizzes_difficulty", "difficulty"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    career_path_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    required_level: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False)
    time_limit_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_final_assessment: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))
    is_practice: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
