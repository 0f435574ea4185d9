from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from quizproctor.db.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("total_xp >= 0", name="ck_users_total_xp_non_negative"),
        CheckConstraint("xp >= 0", name="ck_users_xp_non_negative"),
        CheckConstraint("level >= 1", name="ck_users_level_positive"),
        CheckConstraint(
            "path_selection_mode IN ('manual','ai-guided')",
            name="ck_users_path_selection_mode",
        ),
        Index("idx_users_total_xp", "total_xp"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    level: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    current_career_path_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    path_selection_mode: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        server_default=text("'manual'"),
    )
    has_completed_interest_assessment: Mapped[bool] = mapped_column(
        nullable=False,
        server_default=text("false"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
