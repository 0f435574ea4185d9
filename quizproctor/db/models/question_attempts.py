from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from quizproctor.db.models.base import Base


class QuestionAttempt(Base):
    __tablename__ = "question_attempts"
    __table_args__ = (
        Index("idx_question_attempts_quiz_attempt", "quiz_attempt_id"),
        Index("idx_question_attempts_user_category", "user_id", "category"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    quiz_attempt_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("quiz_attempts.id"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    question_id: Mapped[str] = mapped_column(String(96), nullable=False)
    selected_answer: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(nullable=False)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
