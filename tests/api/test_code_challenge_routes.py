from __future__ import annotations

from uuid import UUID

from fastapi.testclient import TestClient

from quizproctor.api.routes import code_challenges
from quizproctor.judge.errors import JudgeNotConfiguredError, UnsupportedLanguageError
from quizproctor.judge.types import CaseResult, CaseRunSummary
from quizproctor.main import app
from quizproctor.scoring.code_challenges import CodeSubmissionResult
from tests.api.route_fakes import FakeSessionLocal

USER_HEADERS = {"X-User-Id": "7"}
BODY = {"code": "print('Fizz')", "language": "python", "isDailyChallenge": True}


def test_submit_code_returns_case_results(monkeypatch) -> None:
    calls: list[dict[str, object]] = []

    async def fake_submit_code(session_factory, **kwargs):  # noqa: ANN001
        calls.append({"session_factory": session_factory, **kwargs})
        return CodeSubmissionResult(
            attempt_id=UUID("00000000-0000-0000-0000-000000000002"),
            challenge_id="fizzbuzz",
            passed=False,
            xp_earned=0,
            test_results=CaseRunSummary(
                results=[
                    CaseResult(input="3", expected_output="Fizz", actual_output="Fizz", passed=True, error=None),
                    CaseResult(input="5", expected_output="Buzz", actual_output=None, passed=False, error="boom"),
                ]
            ),
            leveled_up=False,
            new_level=1,
            reached_level_20=False,
            is_retake=False,
            total_xp=0,
            xp=0,
        )

    monkeypatch.setattr(code_challenges, "SessionLocal", FakeSessionLocal)
    monkeypatch.setattr(code_challenges.CodeChallengeService, "submit_code", fake_submit_code)

    client = TestClient(app)
    response = client.post("/api/challenges/fizzbuzz/submit", json=BODY, headers=USER_HEADERS)

    assert response.status_code == 200
    payload = response.json()
    assert payload["passed"] is False
    assert payload["testResults"]["passed"] == 1
    assert payload["testResults"]["total"] == 2
    assert payload["testResults"]["results"][1] == {
        "input": "5",
        "expectedOutput": "Buzz",
        "actualOutput": None,
        "passed": False,
        "error": "boom",
    }
    assert calls[0]["is_daily_challenge"] is True
    assert calls[0]["language"] == "python"
    assert calls[0]["session_factory"] is FakeSessionLocal


def test_submit_code_without_judge_is_502(monkeypatch) -> None:
    async def fake_submit_code(session_factory, **kwargs):  # noqa: ANN001
        del session_factory, kwargs
        raise JudgeNotConfiguredError("JUDGE0_API_KEY is not configured")

    monkeypatch.setattr(code_challenges, "SessionLocal", FakeSessionLocal)
    monkeypatch.setattr(code_challenges.CodeChallengeService, "submit_code", fake_submit_code)

    client = TestClient(app)
    response = client.post("/api/challenges/fizzbuzz/submit", json=BODY, headers=USER_HEADERS)

    assert response.status_code == 502
    assert response.json() == {"detail": {"code": "E_JUDGE_UNAVAILABLE"}}


def test_submit_code_with_unknown_language_is_422(monkeypatch) -> None:
    async def fake_submit_code(session_factory, **kwargs):  # noqa: ANN001
        del session_factory, kwargs
        raise UnsupportedLanguageError("cobol")

    monkeypatch.setattr(code_challenges, "SessionLocal", FakeSessionLocal)
    monkeypatch.setattr(code_challenges.CodeChallengeService, "submit_code", fake_submit_code)

    client = TestClient(app)
    response = client.post(
        "/api/challenges/fizzbuzz/submit",
        json={**BODY, "language": "cobol"},
        headers=USER_HEADERS,
    )

    assert response.status_code == 422
    assert response.json() == {"detail": {"code": "E_UNSUPPORTED_LANGUAGE"}}
