from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from quizproctor.api.deps import get_current_user_id
from quizproctor.daily.errors import DailyChallengeAlreadyCompletedError, DailyChallengeNotFoundError
from quizproctor.daily.service import DailyChallengeService
from quizproctor.daily.types import ChallengeType
from quizproctor.db.session import SessionLocal
from quizproctor.scoring.errors import QuizNotFoundError, UserNotFoundError
from quizproctor.scoring.question_sets import load_question_set
from quizproctor.scoring.service import ScoringService
from quizproctor.scoring.types import QuestionSet, QuizSubmissionResult

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = structlog.get_logger("quizproctor.api.quizzes")


class QuizSubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # non-string values are accepted and graded as unanswered
    answers: dict[str, Any] = Field(default_factory=dict)
    was_tab_switched: bool = Field(default=False, alias="wasTabSwitched")
    is_daily_challenge: bool = Field(default=False, alias="isDailyChallenge")
    time_spent: int | None = Field(default=None, ge=0, alias="timeSpent")


class QuizSubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt_id: str = Field(alias="attemptId")
    score: float
    correct_answers: int = Field(alias="correctAnswers")
    total_questions: int = Field(alias="totalQuestions")
    xp_earned: int = Field(alias="xpEarned")
    leveled_up: bool = Field(alias="leveledUp")
    new_level: int = Field(alias="newLevel")
    reached_level_20: bool = Field(alias="reachedLevel20")
    is_retake: bool = Field(alias="isRetake")


class QuizPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    difficulty: str
    career_path_id: str | None = Field(default=None, alias="careerPathId")
    required_level: int = Field(alias="requiredLevel")
    xp_reward: int = Field(alias="xpReward")
    time_limit: int | None = Field(default=None, alias="timeLimit")
    is_final_assessment: bool = Field(alias="isFinalAssessment")
    is_practice: bool = Field(alias="isPractice")


class QuestionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    question_text: str = Field(alias="questionText")
    options: list[str]
    category: str | None = None


class QuestionSetResponse(BaseModel):
    quiz: QuizPayload
    questions: list[QuestionPayload]


def _as_question_set_response(question_set: QuestionSet) -> QuestionSetResponse:
    quiz = question_set.quiz
    return QuestionSetResponse(
        quiz=QuizPayload(
            id=quiz.quiz_id,
            title=quiz.title,
            description=quiz.description,
            difficulty=quiz.difficulty,
            career_path_id=quiz.career_path_id,
            required_level=quiz.required_level,
            xp_reward=quiz.xp_reward,
            time_limit=quiz.time_limit_seconds,
            is_final_assessment=quiz.is_final_assessment,
            is_practice=quiz.is_practice,
        ),
        questions=[
            QuestionPayload(
                id=question.question_id,
                question_text=question.text,
                options=list(question.options),
                category=question.category,
            )
            for question in question_set.questions
        ],
    )


def _as_submit_response(result: QuizSubmissionResult) -> QuizSubmitResponse:
    return QuizSubmitResponse(
        attempt_id=str(result.attempt_id),
        score=result.score,
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
        xp_earned=result.xp_earned,
        leveled_up=result.leveled_up,
        new_level=result.new_level,
        reached_level_20=result.reached_level_20,
        is_retake=result.is_retake,
    )


@router.get("/{quiz_id}", response_model=QuestionSetResponse)
async def get_question_set(
    quiz_id: str,
    daily: bool = Query(default=False),
    user_id: int = Depends(get_current_user_id),
) -> QuestionSetResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            if daily:
                await DailyChallengeService.ensure_startable(
                    session,
                    user_id=user_id,
                    challenge_id=quiz_id,
                    challenge_type=ChallengeType.QUIZ,
                    now_utc=now_utc,
                )
            question_set = await load_question_set(session, quiz_id=quiz_id)
    except QuizNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_QUIZ_NOT_FOUND"}) from exc
    except DailyChallengeNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_DAILY_CHALLENGE_NOT_FOUND"}) from exc
    except DailyChallengeAlreadyCompletedError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "E_DAILY_CHALLENGE_ALREADY_COMPLETED"},
        ) from exc

    return _as_question_set_response(question_set)


@router.post("/practice/{quiz_id}/submit", response_model=QuizSubmitResponse)
async def submit_practice_quiz(
    quiz_id: str,
    payload: QuizSubmitRequest,
    user_id: int = Depends(get_current_user_id),
) -> QuizSubmitResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await ScoringService.submit_practice_attempt(
                session,
                user_id=user_id,
                quiz_id=quiz_id,
                answers=payload.answers,
                was_tab_switched=payload.was_tab_switched,
                time_spent_seconds=payload.time_spent,
                now_utc=now_utc,
            )
    except QuizNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_QUIZ_NOT_FOUND"}) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_USER_NOT_FOUND"}) from exc

    return _as_submit_response(result)


@router.post("/{quiz_id}/submit", response_model=QuizSubmitResponse)
async def submit_quiz(
    quiz_id: str,
    payload: QuizSubmitRequest,
    user_id: int = Depends(get_current_user_id),
) -> QuizSubmitResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await ScoringService.submit_quiz_attempt(
                session,
                user_id=user_id,
                quiz_id=quiz_id,
                answers=payload.answers,
                was_tab_switched=payload.was_tab_switched,
                is_daily_challenge=payload.is_daily_challenge,
                time_spent_seconds=payload.time_spent,
                now_utc=now_utc,
            )
    except QuizNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_QUIZ_NOT_FOUND"}) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_USER_NOT_FOUND"}) from exc

    return _as_submit_response(result)
