from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx
import structlog

from quizproctor.core.config import Settings, get_settings
from quizproctor.judge.errors import (
    JudgeNotConfiguredError,
    JudgeRequestError,
    JudgeTimeoutError,
    UnsupportedLanguageError,
)
from quizproctor.judge.types import (
    STATUS_ACCEPTED,
    CaseResult,
    CaseRunSummary,
    JudgeCase,
    SubmissionResult,
)

logger = structlog.get_logger("quizproctor.judge")

LANGUAGE_IDS: dict[str, int] = {
    "javascript": 63,
    "python": 71,
    "java": 62,
    "cpp": 54,
    "c": 50,
    "typescript": 74,
    "go": 60,
    "rust": 73,
}


def resolve_language_id(language: str) -> int:
    language_id = LANGUAGE_IDS.get(language.strip().lower())
    if language_id is None:
        raise UnsupportedLanguageError(language)
    return language_id


class Judge0Client:
    """Submit/poll client for a Judge0 CE compatible execution service."""

    def __init__(
        self,
        *,
        base_url: str,
        host: str,
        api_key: str,
        poll_interval_seconds: float = 0.5,
        max_wait_seconds: float = 10.0,
        http_timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._host = host
        self._api_key = api_key
        self._poll_interval_seconds = poll_interval_seconds
        self._max_wait_seconds = max_wait_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=http_timeout_seconds,
        )
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> Judge0Client:
        resolved = settings or get_settings()
        return cls(
            base_url=resolved.judge0_base_url,
            host=resolved.judge0_host,
            api_key=resolved.judge0_api_key,
            poll_interval_seconds=resolved.judge0_poll_interval_ms / 1000,
            max_wait_seconds=resolved.judge0_max_wait_ms / 1000,
            http_timeout_seconds=resolved.judge0_http_timeout_seconds,
            client=client,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Judge0Client:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            raise JudgeNotConfiguredError("JUDGE0_API_KEY is not configured")
        return {
            "X-RapidAPI-Key": self._api_key,
            "X-RapidAPI-Host": self._host,
        }

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        headers = self._headers()
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise JudgeRequestError(f"judge request failed: {exc}") from exc
        if response.status_code >= 300:
            raise JudgeRequestError(
                f"judge responded with {response.status_code}: {response.text[:500]}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise JudgeRequestError("judge returned a malformed JSON body") from exc

    async def submit(
        self,
        *,
        source_code: str,
        language_id: int,
        stdin: str | None = None,
        expected_output: str | None = None,
    ) -> str:
        payload = await self._request_json(
            "POST",
            "/submissions",
            params={"base64_encoded": "false", "wait": "false"},
            json={
                "source_code": source_code,
                "language_id": language_id,
                "stdin": stdin or "",
                "expected_output": expected_output or None,
            },
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise JudgeRequestError("judge submission response has no token")
        return token

    async def get_submission(self, token: str) -> SubmissionResult:
        payload = await self._request_json(
            "GET",
            f"/submissions/{token}",
            params={"base64_encoded": "false"},
        )
        return SubmissionResult.from_payload(payload)

    async def execute(
        self,
        *,
        source_code: str,
        language_id: int,
        stdin: str | None = None,
        expected_output: str | None = None,
        max_wait_seconds: float | None = None,
    ) -> SubmissionResult:
        """Submits code and polls until a terminal status or the wait bound."""
        token = await self.submit(
            source_code=source_code,
            language_id=language_id,
            stdin=stdin,
            expected_output=expected_output,
        )
        max_wait = self._max_wait_seconds if max_wait_seconds is None else max_wait_seconds
        started_at = self._clock()
        while self._clock() - started_at < max_wait:
            result = await self.get_submission(token)
            if result.status.is_terminal:
                return result
            await self._sleep(self._poll_interval_seconds)

        logger.warning("judge_submission_timeout", token=token, max_wait_seconds=max_wait)
        raise JudgeTimeoutError("Code execution timeout")

    async def run_test_cases(
        self,
        *,
        source_code: str,
        language_id: int,
        test_cases: Sequence[JudgeCase],
    ) -> CaseRunSummary:
        summary = CaseRunSummary()
        for index, case in enumerate(test_cases):
            try:
                result = await self.execute(
                    source_code=source_code,
                    language_id=language_id,
                    stdin=case.input,
                    expected_output=case.expected_output,
                )
            except JudgeNotConfiguredError:
                raise
            except (JudgeRequestError, JudgeTimeoutError) as exc:
                logger.warning("judge_test_case_failed", case_index=index, error=str(exc))
                summary.results.append(
                    CaseResult(
                        input=case.input,
                        expected_output=case.expected_output,
                        actual_output=None,
                        passed=False,
                        error=str(exc),
                    )
                )
                continue

            actual_output = (result.stdout or "").strip() or None
            summary.results.append(
                CaseResult(
                    input=case.input,
                    expected_output=case.expected_output,
                    actual_output=actual_output,
                    passed=(
                        actual_output == case.expected_output.strip()
                        and result.status.id == STATUS_ACCEPTED
                    ),
                    error=result.error_text,
                )
            )
        return summary
