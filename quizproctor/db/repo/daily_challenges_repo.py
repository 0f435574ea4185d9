from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.db.models.daily_challenges import DailyChallenge


class DailyChallengesRepo:
    @staticmethod
    async def list_for_user_date(
        session: AsyncSession,
        *,
        user_id: int,
        assigned_date: date,
    ) -> list[DailyChallenge]:
        stmt = (
            select(DailyChallenge)
            .where(
                DailyChallenge.user_id == user_id,
                DailyChallenge.assigned_date == assigned_date,
            )
            .order_by(DailyChallenge.challenge_type.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_for_user_type_date_for_update(
        session: AsyncSession,
        *,
        user_id: int,
        challenge_type: str,
        assigned_date: date,
    ) -> DailyChallenge | None:
        stmt = (
            select(DailyChallenge)
            .where(
                DailyChallenge.user_id == user_id,
                DailyChallenge.challenge_type == challenge_type,
                DailyChallenge.assigned_date == assigned_date,
            )
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, daily_challenge: DailyChallenge) -> DailyChallenge:
        async with session.begin_nested():
            session.add(daily_challenge)
            await session.flush()
        return daily_challenge
