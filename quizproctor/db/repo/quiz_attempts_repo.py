from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.db.models.question_attempts import QuestionAttempt
from quizproctor.db.models.quiz_attempts import QuizAttempt


class QuizAttemptsRepo:
    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        attempt: QuizAttempt,
        question_attempts: Sequence[QuestionAttempt] = (),
    ) -> QuizAttempt:
        session.add(attempt)
        await session.flush()
        if question_attempts:
            session.add_all(list(question_attempts))
            await session.flush()
        return attempt

    @staticmethod
    async def count_for_user_quiz(session: AsyncSession, *, user_id: int, quiz_id: str) -> int:
        stmt = select(func.count(QuizAttempt.id)).where(
            QuizAttempt.user_id == user_id,
            QuizAttempt.quiz_id == quiz_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def list_recent_quiz_ids(
        session: AsyncSession,
        *,
        user_id: int,
        limit: int = 10,
    ) -> list[str]:
        stmt = (
            select(QuizAttempt.quiz_id)
            .where(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.completed_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
