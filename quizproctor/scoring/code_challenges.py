from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quizproctor.daily.errors import DailyChallengeNotFoundError
from quizproctor.daily.service import DailyChallengeService
from quizproctor.daily.types import ChallengeType
from quizproctor.db.models.challenge_attempts import ChallengeAttempt
from quizproctor.db.repo.code_challenges_repo import CodeChallengesRepo
from quizproctor.db.repo.users_repo import UsersRepo
from quizproctor.judge.client import Judge0Client, resolve_language_id
from quizproctor.judge.errors import JudgeNotConfiguredError
from quizproctor.judge.types import CaseRunSummary, JudgeCase
from quizproctor.scoring.errors import CodeChallengeNotFoundError, UserNotFoundError
from quizproctor.scoring.service import ScoringService

logger = structlog.get_logger("quizproctor.scoring.code")


@dataclass(frozen=True, slots=True)
class PreparedCodeSubmission:
    challenge_id: str
    xp_reward: int
    language: str
    language_id: int
    test_cases: tuple[JudgeCase, ...]


@dataclass(slots=True)
class CodeSubmissionResult:
    attempt_id: UUID
    challenge_id: str
    passed: bool
    xp_earned: int
    test_results: CaseRunSummary
    leveled_up: bool
    new_level: int
    reached_level_20: bool
    is_retake: bool
    total_xp: int
    xp: int


class CodeChallengeService:
    @staticmethod
    async def prepare_submission(
        session: AsyncSession,
        *,
        challenge_id: str,
        language: str,
    ) -> PreparedCodeSubmission:
        challenge = await CodeChallengesRepo.get_by_id(session, challenge_id)
        if challenge is None:
            raise CodeChallengeNotFoundError
        return PreparedCodeSubmission(
            challenge_id=challenge.id,
            xp_reward=challenge.xp_reward,
            language=language.strip().lower(),
            language_id=resolve_language_id(language),
            test_cases=tuple(JudgeCase.from_record(record) for record in challenge.test_cases),
        )

    @staticmethod
    async def record_submission(
        session: AsyncSession,
        *,
        user_id: int,
        prepared: PreparedCodeSubmission,
        code: str,
        summary: CaseRunSummary,
        is_daily_challenge: bool,
        now_utc: datetime,
    ) -> CodeSubmissionResult:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise UserNotFoundError
        is_retake = await CodeChallengesRepo.has_passed_attempt(
            session,
            user_id=user_id,
            challenge_id=prepared.challenge_id,
        )
        xp_earned = prepared.xp_reward if summary.all_passed and not is_retake else 0

        attempt_id = uuid4()
        await CodeChallengesRepo.create_attempt(
            session,
            attempt=ChallengeAttempt(
                id=attempt_id,
                user_id=user_id,
                challenge_id=prepared.challenge_id,
                code=code,
                language=prepared.language,
                passed=summary.all_passed,
                passed_cases=summary.passed,
                total_cases=summary.total,
                xp_earned=xp_earned,
                submitted_at=now_utc,
            ),
        )
        outcome = await ScoringService.apply_xp(session, user=user, xp_earned=xp_earned)

        if is_daily_challenge:
            try:
                await DailyChallengeService.complete(
                    session,
                    user_id=user_id,
                    challenge_id=prepared.challenge_id,
                    challenge_type=ChallengeType.CODE,
                    now_utc=now_utc,
                    reason="submitted",
                )
            except DailyChallengeNotFoundError:
                logger.warning(
                    "daily_challenge_completion_skipped",
                    user_id=user_id,
                    challenge_id=prepared.challenge_id,
                )

        logger.info(
            "code_challenge_attempt_graded",
            user_id=user_id,
            challenge_id=prepared.challenge_id,
            attempt_id=str(attempt_id),
            passed_cases=summary.passed,
            total_cases=summary.total,
            xp_earned=xp_earned,
            is_retake=is_retake,
        )
        return CodeSubmissionResult(
            attempt_id=attempt_id,
            challenge_id=prepared.challenge_id,
            passed=summary.all_passed,
            xp_earned=xp_earned,
            test_results=summary,
            leveled_up=outcome.leveled_up,
            new_level=outcome.new_level,
            reached_level_20=outcome.reached_milestone,
            is_retake=is_retake,
            total_xp=outcome.total_xp,
            xp=outcome.xp,
        )

    @staticmethod
    async def submit_code(
        session_factory: async_sessionmaker[AsyncSession],
        *,
        user_id: int,
        challenge_id: str,
        code: str,
        language: str,
        is_daily_challenge: bool,
        judge: Judge0Client,
        now_utc: datetime,
    ) -> CodeSubmissionResult:
        """Loads the challenge, runs the judge, then scores in a second unit of work.

        No session is open while the judge runs.
        """
        async with session_factory.begin() as session:
            prepared = await CodeChallengeService.prepare_submission(
                session,
                challenge_id=challenge_id,
                language=language,
            )
        if not judge.is_configured:
            raise JudgeNotConfiguredError("JUDGE0_API_KEY is not configured")

        summary = await judge.run_test_cases(
            source_code=code,
            language_id=prepared.language_id,
            test_cases=prepared.test_cases,
        )

        async with session_factory.begin() as session:
            return await CodeChallengeService.record_submission(
                session,
                user_id=user_id,
                prepared=prepared,
                code=code,
                summary=summary,
                is_daily_challenge=is_daily_challenge,
                now_utc=now_utc,
            )
