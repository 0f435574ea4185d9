from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from quizproctor.db.models.base import Base


class CodeChallenge(Base):
    __tablename__ = "code_challenges"
    __table_args__ = (
        CheckConstraint("xp_reward >= 0", name="ck_code_challenges_xp_reward_non_negative"),
        Index("idx_code_challenges_career_path_level", "career_path_id", "required_level"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    career_path_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    required_level: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False)
    starter_code: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    # [{"input": "...", "expectedOutput": "..."}]
    test_cases: Mapped[list[dict[str, str]]] = mapped_column(JSONB, nullable=False)
    supported_languages: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
