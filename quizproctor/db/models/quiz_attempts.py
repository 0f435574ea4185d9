from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from quizproctor.db.models.base import Base


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="ck_quiz_attempts_score_range"),
        CheckConstraint(
            "correct_answers >= 0 AND correct_answers <= total_questions",
            name="ck_quiz_attempts_correct_range",
        ),
        CheckConstraint("xp_earned >= 0", name="ck_quiz_attempts_xp_non_negative"),
        CheckConstraint(
            "time_spent_seconds IS NULL OR time_spent_seconds >= 0",
            name="ck_quiz_attempts_time_spent_non_negative",
        ),
        Index("idx_quiz_attempts_user_quiz", "user_id", "quiz_id"),
        Index("idx_quiz_attempts_user_time", "user_id", "completed_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    quiz_id: Mapped[str] = mapped_column(String(64), ForeignKey("quizzes.id"), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    xp_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    was_tab_switched: Mapped[bool] = mapped_column(nullable=False)
    is_retake: Mapped[bool] = mapped_column(nullable=False)
    time_spent_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
