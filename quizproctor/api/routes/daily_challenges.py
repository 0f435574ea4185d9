from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from quizproctor.api.deps import get_current_user_id
from quizproctor.daily.errors import DailyChallengeNotFoundError, InvalidChallengeTypeError
from quizproctor.daily.service import DailyChallengeService
from quizproctor.daily.types import DailyChallengeView
from quizproctor.db.session import SessionLocal

router = APIRouter(prefix="/api/daily-challenges", tags=["daily-challenges"])


class DailyChallengePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    challenge_type: str = Field(alias="challengeType")
    title: str
    difficulty: str
    xp_reward: int = Field(alias="xpReward")
    completed: bool


class TodayChallengesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assigned_date: date = Field(alias="date")
    quiz_challenge: DailyChallengePayload | None = Field(default=None, alias="quizChallenge")
    code_challenge: DailyChallengePayload | None = Field(default=None, alias="codeChallenge")
    all_completed: bool = Field(alias="allCompleted")


class DailyCompleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    challenge_id: str = Field(min_length=1, alias="challengeId")
    challenge_type: str = Field(min_length=1, alias="challengeType")


class DailyCompleteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    challenge_id: str = Field(alias="challengeId")
    challenge_type: str = Field(alias="challengeType")
    assigned_date: date = Field(alias="date")
    completed: bool
    completed_now: bool = Field(alias="completedNow")


def _as_payload(view: DailyChallengeView | None) -> DailyChallengePayload | None:
    if view is None:
        return None
    return DailyChallengePayload(
        id=view.challenge_id,
        challenge_type=view.challenge_type.value,
        title=view.title,
        difficulty=view.difficulty,
        xp_reward=view.xp_reward,
        completed=view.completed,
    )


@router.get("/today", response_model=TodayChallengesResponse)
async def get_today_challenges(
    user_id: int = Depends(get_current_user_id),
) -> TodayChallengesResponse:
    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        today = await DailyChallengeService.get_today(session, user_id=user_id, now_utc=now_utc)

    return TodayChallengesResponse(
        assigned_date=today.assigned_date,
        quiz_challenge=_as_payload(today.quiz_challenge),
        code_challenge=_as_payload(today.code_challenge),
        all_completed=today.all_completed,
    )


@router.post("/complete", response_model=DailyCompleteResponse)
async def complete_daily_challenge(
    payload: DailyCompleteRequest,
    user_id: int = Depends(get_current_user_id),
) -> DailyCompleteResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await DailyChallengeService.complete(
                session,
                user_id=user_id,
                challenge_id=payload.challenge_id,
                challenge_type=payload.challenge_type,
                now_utc=now_utc,
                reason="forfeit",
            )
    except InvalidChallengeTypeError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_INVALID_CHALLENGE_TYPE"}) from exc
    except DailyChallengeNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_DAILY_CHALLENGE_NOT_FOUND"}) from exc

    return DailyCompleteResponse(
        challenge_id=result.challenge_id,
        challenge_type=result.challenge_type.value,
        assigned_date=result.assigned_date,
        completed=True,
        completed_now=result.completed_now,
    )
