from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from quizproctor.judge.errors import JudgeRequestError

# 1 = In Queue, 2 = Processing; anything above is terminal
LAST_PENDING_STATUS_ID = 2
STATUS_ACCEPTED = 3


@dataclass(frozen=True, slots=True)
class SubmissionStatus:
    id: int
    description: str

    @property
    def is_terminal(self) -> bool:
        return self.id > LAST_PENDING_STATUS_ID


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    status: SubmissionStatus
    stdout: str | None = None
    stderr: str | None = None
    compile_output: str | None = None
    message: str | None = None
    time: str | None = None
    memory: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> SubmissionResult:
        if not isinstance(payload, dict):
            raise JudgeRequestError("judge returned a non-object submission payload")
        raw_status = payload.get("status")
        if not isinstance(raw_status, dict) or not isinstance(raw_status.get("id"), int):
            raise JudgeRequestError("judge submission payload has no status id")
        memory = payload.get("memory")
        return cls(
            status=SubmissionStatus(
                id=raw_status["id"],
                description=str(raw_status.get("description") or ""),
            ),
            stdout=payload.get("stdout"),
            stderr=payload.get("stderr"),
            compile_output=payload.get("compile_output"),
            message=payload.get("message"),
            time=payload.get("time"),
            memory=memory if isinstance(memory, int) else None,
        )

    @property
    def error_text(self) -> str | None:
        return self.stderr or self.compile_output or self.message or None


@dataclass(frozen=True, slots=True)
class JudgeCase:
    input: str
    expected_output: str

    @classmethod
    def from_record(cls, record: dict[str, str]) -> JudgeCase:
        return cls(
            input=str(record.get("input", "")),
            expected_output=str(record.get("expectedOutput", "")),
        )


@dataclass(frozen=True, slots=True)
class CaseResult:
    input: str
    expected_output: str
    actual_output: str | None
    passed: bool
    error: str | None


@dataclass(slots=True)
class CaseRunSummary:
    results: list[CaseResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for item in self.results if item.passed)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.passed == self.total
