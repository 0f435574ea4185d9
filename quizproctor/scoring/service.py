from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.core.config import get_settings
from quizproctor.daily.errors import DailyChallengeNotFoundError
from quizproctor.daily.service import DailyChallengeService
from quizproctor.daily.types import ChallengeType
from quizproctor.db.models.question_attempts import QuestionAttempt
from quizproctor.db.models.quiz_attempts import QuizAttempt
from quizproctor.db.models.users import User
from quizproctor.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from quizproctor.db.repo.quizzes_repo import QuizzesRepo
from quizproctor.db.repo.users_repo import UsersRepo
from quizproctor.scoring.errors import QuizNotFoundError, UserNotFoundError
from quizproctor.scoring.rules import (
    awaits_path_recommendation,
    compute_xp_award,
    grade_answers,
    resolve_level_outcome,
)
from quizproctor.scoring.types import CanonicalQuestion, LevelOutcome, QuizSubmissionResult

logger = structlog.get_logger("quizproctor.scoring")


class ScoringService:
    """Server-side authority for correctness, score and XP.

    Precondition: one call per logical attempt. Recomputation is deterministic,
    but a second call records a second attempt (scored as a retake).
    """

    @staticmethod
    async def apply_xp(
        session: AsyncSession,
        *,
        user: User,
        xp_earned: int,
    ) -> LevelOutcome:
        """Applies earned XP to a row-locked user and reports the level transition.

        Without XP the stored progress is returned as is; nothing is recomputed.
        """
        if xp_earned <= 0:
            return LevelOutcome(
                previous_level=user.level,
                new_level=user.level,
                total_xp=user.total_xp,
                xp=user.xp,
                leveled_up=False,
                reached_milestone=False,
            )

        settings = get_settings()
        total_xp, _, _ = await UsersRepo.apply_xp(
            session,
            user_id=user.id,
            xp_delta=xp_earned,
            xp_per_level=settings.xp_per_level,
        )
        outcome = resolve_level_outcome(
            previous_level=user.level,
            total_xp=total_xp,
            xp_per_level=settings.xp_per_level,
            milestone_level=settings.level_milestone,
            milestone_eligible=awaits_path_recommendation(
                path_selection_mode=user.path_selection_mode,
                has_completed_interest_assessment=user.has_completed_interest_assessment,
            ),
        )
        if outcome.leveled_up:
            logger.info(
                "user_leveled_up",
                user_id=user.id,
                previous_level=outcome.previous_level,
                new_level=outcome.new_level,
                reached_milestone=outcome.reached_milestone,
            )
        return outcome

    @staticmethod
    async def _score_and_record(
        session: AsyncSession,
        *,
        user_id: int,
        quiz_id: str,
        answers: Mapping[str, str],
        was_tab_switched: bool,
        is_daily_challenge: bool,
        time_spent_seconds: int | None,
        practice: bool,
        now_utc: datetime,
    ) -> QuizSubmissionResult:
        quiz = await QuizzesRepo.get_by_id(session, quiz_id)
        if quiz is None or quiz.is_practice != practice:
            raise QuizNotFoundError
        questions = await QuizzesRepo.list_questions(session, quiz_id=quiz.id)
        if not questions:
            raise QuizNotFoundError

        # row lock serializes retake detection and XP for this user
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise UserNotFoundError

        graded = grade_answers(
            (
                CanonicalQuestion(
                    question_id=question.id,
                    correct_answer=question.correct_answer,
                    category=question.category,
                )
                for question in questions
            ),
            answers,
        )
        prior_attempts = await QuizAttemptsRepo.count_for_user_quiz(
            session,
            user_id=user_id,
            quiz_id=quiz.id,
        )
        is_retake = prior_attempts > 0
        xp_earned = compute_xp_award(
            xp_reward=quiz.xp_reward,
            correct_answers=graded.correct_answers,
            total_questions=graded.total_questions,
            is_retake=is_retake,
            was_tab_switched=was_tab_switched,
        )

        attempt_id = uuid4()
        await QuizAttemptsRepo.create(
            session,
            attempt=QuizAttempt(
                id=attempt_id,
                user_id=user_id,
                quiz_id=quiz.id,
                score=graded.score,
                correct_answers=graded.correct_answers,
                total_questions=graded.total_questions,
                xp_earned=xp_earned,
                was_tab_switched=was_tab_switched,
                is_retake=is_retake,
                time_spent_seconds=time_spent_seconds,
                completed_at=now_utc,
            ),
            question_attempts=[
                QuestionAttempt(
                    quiz_attempt_id=attempt_id,
                    user_id=user_id,
                    question_id=item.question_id,
                    selected_answer=item.selected_answer or "",
                    is_correct=item.is_correct,
                    category=item.category,
                    answered_at=now_utc,
                )
                for item in graded.questions
            ],
        )
        outcome = await ScoringService.apply_xp(session, user=user, xp_earned=xp_earned)

        if is_daily_challenge and not practice:
            try:
                await DailyChallengeService.complete(
                    session,
                    user_id=user_id,
                    challenge_id=quiz.id,
                    challenge_type=ChallengeType.QUIZ,
                    now_utc=now_utc,
                    reason="submitted",
                )
            except DailyChallengeNotFoundError:
                # scoring stands even when no matching assignment exists today
                logger.warning(
                    "daily_challenge_completion_skipped",
                    user_id=user_id,
                    quiz_id=quiz.id,
                )

        if is_retake:
            logger.info("quiz_retake_detected", user_id=user_id, quiz_id=quiz.id, practice=practice)
        logger.info(
            "quiz_attempt_scored",
            user_id=user_id,
            quiz_id=quiz.id,
            attempt_id=str(attempt_id),
            practice=practice,
            score=graded.score,
            correct_answers=graded.correct_answers,
            total_questions=graded.total_questions,
            xp_earned=xp_earned,
            was_tab_switched=was_tab_switched,
            is_daily_challenge=is_daily_challenge and not practice,
        )
        return QuizSubmissionResult(
            attempt_id=attempt_id,
            quiz_id=quiz.id,
            score=graded.score,
            correct_answers=graded.correct_answers,
            total_questions=graded.total_questions,
            xp_earned=xp_earned,
            leveled_up=outcome.leveled_up,
            new_level=outcome.new_level,
            reached_level_20=outcome.reached_milestone,
            is_retake=is_retake,
            total_xp=outcome.total_xp,
            xp=outcome.xp,
        )

    @staticmethod
    async def submit_quiz_attempt(
        session: AsyncSession,
        *,
        user_id: int,
        quiz_id: str,
        answers: Mapping[str, str],
        was_tab_switched: bool,
        is_daily_challenge: bool,
        now_utc: datetime,
        time_spent_seconds: int | None = None,
    ) -> QuizSubmissionResult:
        return await ScoringService._score_and_record(
            session,
            user_id=user_id,
            quiz_id=quiz_id,
            answers=answers,
            was_tab_switched=was_tab_switched,
            is_daily_challenge=is_daily_challenge,
            time_spent_seconds=time_spent_seconds,
            practice=False,
            now_utc=now_utc,
        )

    @staticmethod
    async def submit_practice_attempt(
        session: AsyncSession,
        *,
        user_id: int,
        quiz_id: str,
        answers: Mapping[str, str],
        was_tab_switched: bool,
        now_utc: datetime,
        time_spent_seconds: int | None = None,
    ) -> QuizSubmissionResult:
        return await ScoringService._score_and_record(
            session,
            user_id=user_id,
            quiz_id=quiz_id,
            answers=answers,
            was_tab_switched=was_tab_switched,
            is_daily_challenge=False,
            time_spent_seconds=time_spent_seconds,
            practice=True,
            now_utc=now_utc,
        )
