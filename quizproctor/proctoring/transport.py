from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from quizproctor.proctoring.errors import DailyChallengeConsumedError, QuizNotFoundError, TransportError
from quizproctor.proctoring.types import LoadedQuestionSet, ScoreReport, SubmissionPayload

logger = structlog.get_logger("quizproctor.proctoring.transport")

DAILY_CHALLENGE_CONSUMED_CODE = "E_DAILY_CHALLENGE_ALREADY_COMPLETED"


class AssessmentTransport(Protocol):
    async def fetch_question_set(self, quiz_id: str, *, is_daily_challenge: bool) -> LoadedQuestionSet: ...

    async def submit_quiz(self, payload: SubmissionPayload) -> ScoreReport: ...

    async def submit_practice(self, payload: SubmissionPayload) -> ScoreReport: ...

    async def complete_daily_challenge(self, *, challenge_id: str, challenge_type: str) -> None: ...


class HttpAssessmentTransport:
    """httpx client for the assessment HTTP endpoints."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._client = client
        self._headers = dict(headers or {})

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"request to {url} failed: {exc}") from exc
        if response.status_code == 404:
            raise QuizNotFoundError(url)
        if response.status_code == 409 and _error_code(response) == DAILY_CHALLENGE_CONSUMED_CODE:
            raise DailyChallengeConsumedError(url)
        if response.status_code >= 300:
            logger.warning(
                "assessment_request_rejected",
                url=url,
                status_code=response.status_code,
            )
            raise TransportError(f"{url} responded with {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{url} returned a malformed JSON body") from exc

    async def fetch_question_set(self, quiz_id: str, *, is_daily_challenge: bool) -> LoadedQuestionSet:
        params = {"daily": "true"} if is_daily_challenge else None
        payload = await self._request("GET", f"/api/quizzes/{quiz_id}", params=params)
        try:
            return LoadedQuestionSet.from_payload(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise TransportError("question set payload is malformed") from exc

    async def submit_quiz(self, payload: SubmissionPayload) -> ScoreReport:
        body = await self._request("POST", f"/api/quizzes/{payload.quiz_id}/submit", json=payload.to_wire())
        return self._score_report(body)

    async def submit_practice(self, payload: SubmissionPayload) -> ScoreReport:
        body = await self._request(
            "POST",
            f"/api/quizzes/practice/{payload.quiz_id}/submit",
            json=payload.to_wire(),
        )
        return self._score_report(body)

    async def complete_daily_challenge(self, *, challenge_id: str, challenge_type: str) -> None:
        await self._request(
            "POST",
            "/api/daily-challenges/complete",
            json={"challengeId": challenge_id, "challengeType": challenge_type},
        )

    @staticmethod
    def _score_report(body: Any) -> ScoreReport:
        try:
            return ScoreReport.from_payload(body)
        except (KeyError, TypeError, ValueError) as exc:
            raise TransportError("score payload is malformed") from exc


def _error_code(response: httpx.Response) -> str | None:
    try:
        detail = response.json()["detail"]
    except (ValueError, KeyError, TypeError):
        return None
    if isinstance(detail, dict):
        code = detail.get("code")
        return code if isinstance(code, str) else None
    return None
