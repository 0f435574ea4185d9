from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.db.models.quiz_questions import QuizQuestion
from quizproctor.db.models.quizzes import Quiz


class QuizzesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, quiz_id: str) -> Quiz | None:
        return await session.get(Quiz, quiz_id)

    @staticmethod
    async def list_questions(session: AsyncSession, *, quiz_id: str) -> list[QuizQuestion]:
        stmt = (
            select(QuizQuestion)
            .where(QuizQuestion.quiz_id == quiz_id)
            .order_by(QuizQuestion.position.asc(), QuizQuestion.id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_available(
        session: AsyncSession,
        *,
        career_path_id: str | None,
        max_required_level: int,
        exclude_ids: Collection[str] = (),
    ) -> list[Quiz]:
        stmt = select(Quiz).where(
            Quiz.is_practice.is_(False),
            Quiz.required_level <= max_required_level,
        )
        if career_path_id is not None:
            stmt = stmt.where(
                (Quiz.career_path_id == career_path_id) | (Quiz.career_path_id.is_(None))
            )
        if exclude_ids:
            stmt = stmt.where(Quiz.id.not_in(tuple(exclude_ids)))
        result = await session.execute(stmt.order_by(Quiz.id.asc()))
        return list(result.scalars().all())
