from __future__ import annotations

from datetime import date, datetime
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.core.config import get_settings
from quizproctor.core.time import challenge_local_date
from quizproctor.daily.errors import (
    DailyChallengeAlreadyCompletedError,
    DailyChallengeNotFoundError,
    InvalidChallengeTypeError,
)
from quizproctor.daily.selection import pick_daily_candidate
from quizproctor.daily.types import (
    ChallengeCandidate,
    ChallengeType,
    DailyChallengeView,
    DailyCompletionResult,
    TodayChallenges,
)
from quizproctor.db.models.daily_challenges import DailyChallenge
from quizproctor.db.models.users import User
from quizproctor.db.repo.code_challenges_repo import CodeChallengesRepo
from quizproctor.db.repo.daily_challenges_repo import DailyChallengesRepo
from quizproctor.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from quizproctor.db.repo.quizzes_repo import QuizzesRepo
from quizproctor.db.repo.users_repo import UsersRepo

logger = structlog.get_logger("quizproctor.daily")

RECENT_QUIZ_EXCLUSION_LIMIT = 10


def parse_challenge_type(value: ChallengeType | str) -> ChallengeType:
    if isinstance(value, ChallengeType):
        return value
    try:
        return ChallengeType(str(value).strip().lower())
    except ValueError as exc:
        raise InvalidChallengeTypeError(str(value)) from exc


class DailyChallengeService:
    @staticmethod
    def local_date(now_utc: datetime) -> date:
        return challenge_local_date(now_utc, tz_name=get_settings().daily_challenge_timezone)

    @staticmethod
    async def _list_candidates(
        session: AsyncSession,
        *,
        user: User,
        challenge_type: ChallengeType,
    ) -> list[ChallengeCandidate]:
        if challenge_type == ChallengeType.QUIZ:
            recent_quiz_ids = await QuizAttemptsRepo.list_recent_quiz_ids(
                session,
                user_id=user.id,
                limit=RECENT_QUIZ_EXCLUSION_LIMIT,
            )
            quizzes = await QuizzesRepo.list_available(
                session,
                career_path_id=user.current_career_path_id,
                max_required_level=user.level,
                exclude_ids=set(recent_quiz_ids),
            )
            return [
                ChallengeCandidate(
                    challenge_id=quiz.id,
                    title=quiz.title,
                    difficulty=quiz.difficulty,
                    xp_reward=quiz.xp_reward,
                )
                for quiz in quizzes
            ]

        code_challenges = await CodeChallengesRepo.list_available(
            session,
            career_path_id=user.current_career_path_id,
            max_required_level=user.level,
        )
        return [
            ChallengeCandidate(
                challenge_id=challenge.id,
                title=challenge.title,
                difficulty=challenge.difficulty,
                xp_reward=challenge.xp_reward,
            )
            for challenge in code_challenges
        ]

    @staticmethod
    async def _assign(
        session: AsyncSession,
        *,
        user: User,
        challenge_type: ChallengeType,
        assigned_date: date,
    ) -> DailyChallenge | None:
        candidates = await DailyChallengeService._list_candidates(
            session,
            user=user,
            challenge_type=challenge_type,
        )
        picked = pick_daily_candidate(
            candidates,
            user_level=user.level,
            user_id=user.id,
            assigned_date=assigned_date,
            challenge_type=challenge_type,
        )
        if picked is None:
            logger.info(
                "daily_challenge_no_candidates",
                user_id=user.id,
                challenge_type=challenge_type.value,
                assigned_date=assigned_date.isoformat(),
            )
            return None

        record = DailyChallenge(
            id=uuid4(),
            user_id=user.id,
            challenge_type=challenge_type.value,
            challenge_id=picked.challenge_id,
            assigned_date=assigned_date,
            completed=False,
            completed_at=None,
        )
        try:
            return await DailyChallengesRepo.create(session, daily_challenge=record)
        except IntegrityError:
            loaded = await DailyChallengesRepo.get_for_user_type_date_for_update(
                session,
                user_id=user.id,
                challenge_type=challenge_type.value,
                assigned_date=assigned_date,
            )
            if loaded is None:
                raise
            return loaded

    @staticmethod
    async def _build_view(
        session: AsyncSession,
        *,
        record: DailyChallenge | None,
    ) -> DailyChallengeView | None:
        if record is None:
            return None
        challenge_type = ChallengeType(record.challenge_type)
        if challenge_type == ChallengeType.QUIZ:
            item = await QuizzesRepo.get_by_id(session, record.challenge_id)
        else:
            item = await CodeChallengesRepo.get_by_id(session, record.challenge_id)
        if item is None:
            return None
        return DailyChallengeView(
            challenge_id=record.challenge_id,
            challenge_type=challenge_type,
            title=item.title,
            difficulty=item.difficulty,
            xp_reward=item.xp_reward,
            completed=record.completed,
        )

    @staticmethod
    async def get_today(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> TodayChallenges:
        assigned_date = DailyChallengeService.local_date(now_utc)
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            return TodayChallenges(
                assigned_date=assigned_date,
                quiz_challenge=None,
                code_challenge=None,
            )

        existing = await DailyChallengesRepo.list_for_user_date(
            session,
            user_id=user_id,
            assigned_date=assigned_date,
        )
        records: dict[ChallengeType, DailyChallenge] = {
            ChallengeType(record.challenge_type): record for record in existing
        }
        for challenge_type in ChallengeType:
            if challenge_type in records:
                continue
            assigned = await DailyChallengeService._assign(
                session,
                user=user,
                challenge_type=challenge_type,
                assigned_date=assigned_date,
            )
            if assigned is not None:
                records[challenge_type] = assigned

        return TodayChallenges(
            assigned_date=assigned_date,
            quiz_challenge=await DailyChallengeService._build_view(
                session,
                record=records.get(ChallengeType.QUIZ),
            ),
            code_challenge=await DailyChallengeService._build_view(
                session,
                record=records.get(ChallengeType.CODE),
            ),
        )

    @staticmethod
    async def _get_today_record(
        session: AsyncSession,
        *,
        user_id: int,
        challenge_id: str,
        challenge_type: ChallengeType,
        now_utc: datetime,
    ) -> DailyChallenge:
        assigned_date = DailyChallengeService.local_date(now_utc)
        record = await DailyChallengesRepo.get_for_user_type_date_for_update(
            session,
            user_id=user_id,
            challenge_type=challenge_type.value,
            assigned_date=assigned_date,
        )
        if record is None or record.challenge_id != challenge_id:
            logger.warning(
                "daily_challenge_missing",
                user_id=user_id,
                challenge_id=challenge_id,
                challenge_type=challenge_type.value,
                assigned_date=assigned_date.isoformat(),
                assigned_challenge_id=None if record is None else record.challenge_id,
            )
            raise DailyChallengeNotFoundError
        return record

    @staticmethod
    async def ensure_startable(
        session: AsyncSession,
        *,
        user_id: int,
        challenge_id: str,
        challenge_type: ChallengeType | str,
        now_utc: datetime,
    ) -> DailyChallenge:
        record = await DailyChallengeService._get_today_record(
            session,
            user_id=user_id,
            challenge_id=challenge_id,
            challenge_type=parse_challenge_type(challenge_type),
            now_utc=now_utc,
        )
        if record.completed:
            raise DailyChallengeAlreadyCompletedError
        return record

    @staticmethod
    async def complete(
        session: AsyncSession,
        *,
        user_id: int,
        challenge_id: str,
        challenge_type: ChallengeType | str,
        now_utc: datetime,
        reason: str = "submitted",
    ) -> DailyCompletionResult:
        """Consumes today's slot for one challenge type; the sibling type is untouched.

        Used for genuine submissions and for forfeits alike. Completing an
        already consumed slot is a no-op.
        """
        resolved_type = parse_challenge_type(challenge_type)
        record = await DailyChallengeService._get_today_record(
            session,
            user_id=user_id,
            challenge_id=challenge_id,
            challenge_type=resolved_type,
            now_utc=now_utc,
        )
        if record.completed:
            return DailyCompletionResult(
                challenge_id=record.challenge_id,
                challenge_type=resolved_type,
                assigned_date=record.assigned_date,
                completed_now=False,
            )

        record.completed = True
        record.completed_at = now_utc
        logger.info(
            "daily_challenge_completed",
            user_id=user_id,
            challenge_id=challenge_id,
            challenge_type=resolved_type.value,
            assigned_date=record.assigned_date.isoformat(),
            reason=reason,
        )
        return DailyCompletionResult(
            challenge_id=record.challenge_id,
            challenge_type=resolved_type,
            assigned_date=record.assigned_date,
            completed_now=True,
        )
