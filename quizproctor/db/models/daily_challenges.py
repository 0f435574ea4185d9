from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from quizproctor.db.models.base import Base


class DailyChallenge(Base):
    __tablename__ = "daily_challenges"
    __table_args__ = (
        CheckConstraint(
            "challenge_type IN ('quiz','code')",
            name="ck_daily_challenges_type",
        ),
        CheckConstraint(
            "(completed = false) OR completed_at IS NOT NULL",
            name="ck_daily_challenges_completed_at_required",
        ),
        UniqueConstraint(
            "user_id",
            "challenge_type",
            "assigned_date",
            name="uq_daily_challenges_user_type_date",
        ),
        Index("idx_daily_challenges_user_date", "user_id", "assigned_date"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    challenge_type: Mapped[str] = mapped_column(String(8), nullable=False)
    challenge_id: Mapped[str] = mapped_column(String(64), nullable=False)
    assigned_date: Mapped[date] = mapped_column(Date, nullable=False)
    completed: Mapped[bool] = mapped_column(nullable=False, server_default=text("false"))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
