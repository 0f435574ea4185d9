from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def apply_xp(
        session: AsyncSession,
        *,
        user_id: int,
        xp_delta: int,
        xp_per_level: int,
    ) -> tuple[int, int, int]:
        """Adds XP relative to the stored total and recomputes the level in one statement.

        Returns (total_xp, xp_within_level, level) as stored after the update.
        """
        new_total = User.total_xp + xp_delta
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                total_xp=new_total,
                xp=new_total % xp_per_level,
                level=(new_total // xp_per_level) + 1,
            )
            .returning(User.total_xp, User.xp, User.level)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        total_xp, xp, level = result.one()
        return int(total_xp), int(xp), int(level)
