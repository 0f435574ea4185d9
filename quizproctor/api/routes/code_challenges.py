from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from quizproctor.api.deps import get_current_user_id
from quizproctor.db.session import SessionLocal
from quizproctor.judge.client import Judge0Client
from quizproctor.judge.errors import JudgeNotConfiguredError, UnsupportedLanguageError
from quizproctor.scoring.code_challenges import CodeChallengeService, CodeSubmissionResult
from quizproctor.scoring.errors import CodeChallengeNotFoundError, UserNotFoundError

router = APIRouter(prefix="/api/challenges", tags=["code-challenges"])


class CodeSubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(min_length=1)
    language: str = Field(min_length=1, max_length=32)
    is_daily_challenge: bool = Field(default=False, alias="isDailyChallenge")


class CaseResultPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input: str
    expected_output: str = Field(alias="expectedOutput")
    actual_output: str | None = Field(default=None, alias="actualOutput")
    passed: bool
    error: str | None = None


class CaseRunPayload(BaseModel):
    passed: int
    total: int
    results: list[CaseResultPayload]


class CodeSubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt_id: str = Field(alias="attemptId")
    passed: bool
    xp_earned: int = Field(alias="xpEarned")
    test_results: CaseRunPayload = Field(alias="testResults")
    leveled_up: bool = Field(alias="leveledUp")
    new_level: int = Field(alias="newLevel")
    reached_level_20: bool = Field(alias="reachedLevel20")
    is_retake: bool = Field(alias="isRetake")


def _as_response(result: CodeSubmissionResult) -> CodeSubmitResponse:
    summary = result.test_results
    return CodeSubmitResponse(
        attempt_id=str(result.attempt_id),
        passed=result.passed,
        xp_earned=result.xp_earned,
        test_results=CaseRunPayload(
            passed=summary.passed,
            total=summary.total,
            results=[
                CaseResultPayload(
                    input=case.input,
                    expected_output=case.expected_output,
                    actual_output=case.actual_output,
                    passed=case.passed,
                    error=case.error,
                )
                for case in summary.results
            ],
        ),
        leveled_up=result.leveled_up,
        new_level=result.new_level,
        reached_level_20=result.reached_level_20,
        is_retake=result.is_retake,
    )


@router.post("/{challenge_id}/submit", response_model=CodeSubmitResponse)
async def submit_code_challenge(
    challenge_id: str,
    payload: CodeSubmitRequest,
    user_id: int = Depends(get_current_user_id),
) -> CodeSubmitResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        async with Judge0Client.from_settings() as judge:
            result = await CodeChallengeService.submit_code(
                SessionLocal,
                user_id=user_id,
                challenge_id=challenge_id,
                code=payload.code,
                language=payload.language,
                is_daily_challenge=payload.is_daily_challenge,
                judge=judge,
                now_utc=now_utc,
            )
    except (CodeChallengeNotFoundError, UserNotFoundError) as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"}) from exc
    except UnsupportedLanguageError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_UNSUPPORTED_LANGUAGE"}) from exc
    except JudgeNotConfiguredError as exc:
        raise HTTPException(status_code=502, detail={"code": "E_JUDGE_UNAVAILABLE"}) from exc

    return _as_response(result)
