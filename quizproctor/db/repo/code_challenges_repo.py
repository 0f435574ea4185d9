from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.db.models.challenge_attempts import ChallengeAttempt
from quizproctor.db.models.code_challenges import CodeChallenge


class CodeChallengesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, challenge_id: str) -> CodeChallenge | None:
        return await session.get(CodeChallenge, challenge_id)

    @staticmethod
    async def list_available(
        session: AsyncSession,
        *,
        career_path_id: str | None,
        max_required_level: int,
    ) -> list[CodeChallenge]:
        stmt = select(CodeChallenge).where(CodeChallenge.required_level <= max_required_level)
        if career_path_id is not None:
            stmt = stmt.where(
                (CodeChallenge.career_path_id == career_path_id)
                | (CodeChallenge.career_path_id.is_(None))
            )
        result = await session.execute(stmt.order_by(CodeChallenge.id.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def create_attempt(session: AsyncSession, *, attempt: ChallengeAttempt) -> ChallengeAttempt:
        session.add(attempt)
        await session.flush()
        return attempt

    @staticmethod
    async def has_passed_attempt(session: AsyncSession, *, user_id: int, challenge_id: str) -> bool:
        stmt = (
            select(ChallengeAttempt.id)
            .where(
                ChallengeAttempt.user_id == user_id,
                ChallengeAttempt.challenge_id == challenge_id,
                ChallengeAttempt.passed.is_(True),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
