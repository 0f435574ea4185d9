from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    TERMINATED_BY_VIOLATION = "terminated-by-violation"
    TERMINATED_BY_TIMEOUT = "terminated-by-timeout"
    SUBMITTED = "submitted"
    FORFEITED = "forfeited"
    NOT_FOUND = "not-found"
    ALREADY_COMPLETED = "already-completed"
    ABANDONED = "abandoned"


SCORING_STATES: frozenset[SessionState] = frozenset(
    {
        SessionState.TERMINATED_BY_VIOLATION,
        SessionState.TERMINATED_BY_TIMEOUT,
        SessionState.SUBMITTED,
    }
)
TERMINAL_STATES: frozenset[SessionState] = SCORING_STATES | {
    SessionState.FORFEITED,
    SessionState.NOT_FOUND,
    SessionState.ALREADY_COMPLETED,
    SessionState.ABANDONED,
}


class TamperSignal(str, Enum):
    VISIBILITY_HIDDEN = "visibilitychange"
    WINDOW_BLUR = "blur"
    FOCUS_OUT = "focusout"
    TAB_SHORTCUT = "keyboard_shortcut"
    SIMULATED = "simulated"


@dataclass(frozen=True, slots=True)
class TamperViolation:
    signal: TamperSignal
    violation_count: int


@dataclass(frozen=True, slots=True)
class SessionQuestion:
    question_id: str
    text: str
    options: tuple[str, ...]
    category: str | None = None


@dataclass(frozen=True, slots=True)
class SessionQuiz:
    quiz_id: str
    title: str
    xp_reward: int
    time_limit_seconds: int | None = None
    difficulty: str | None = None
    is_final_assessment: bool = False
    is_practice: bool = False


@dataclass(slots=True)
class LoadedQuestionSet:
    quiz: SessionQuiz
    questions: list[SessionQuestion] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> LoadedQuestionSet:
        quiz = payload["quiz"]
        return cls(
            quiz=SessionQuiz(
                quiz_id=str(quiz["id"]),
                title=str(quiz.get("title", "")),
                xp_reward=int(quiz.get("xpReward", 0)),
                time_limit_seconds=quiz.get("timeLimit"),
                difficulty=quiz.get("difficulty"),
                is_final_assessment=bool(quiz.get("isFinalAssessment", False)),
                is_practice=bool(quiz.get("isPractice", False)),
            ),
            questions=[
                SessionQuestion(
                    question_id=str(item["id"]),
                    text=str(item.get("questionText", "")),
                    options=tuple(str(option) for option in item.get("options", [])),
                    category=item.get("category"),
                )
                for item in payload.get("questions", [])
            ],
        )


@dataclass(frozen=True, slots=True)
class SubmissionPayload:
    quiz_id: str
    answers: dict[str, str]
    was_tab_switched: bool
    is_daily_challenge: bool
    time_spent_seconds: int | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "answers": dict(self.answers),
            "wasTabSwitched": self.was_tab_switched,
            "isDailyChallenge": self.is_daily_challenge,
            "timeSpent": self.time_spent_seconds,
        }


@dataclass(frozen=True, slots=True)
class ScoreReport:
    score: float
    correct_answers: int
    total_questions: int
    xp_earned: int
    leveled_up: bool
    new_level: int
    reached_level_20: bool
    is_retake: bool

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ScoreReport:
        return cls(
            score=float(payload["score"]),
            correct_answers=int(payload["correctAnswers"]),
            total_questions=int(payload["totalQuestions"]),
            xp_earned=int(payload["xpEarned"]),
            leveled_up=bool(payload["leveledUp"]),
            new_level=int(payload["newLevel"]),
            reached_level_20=bool(payload["reachedLevel20"]),
            is_retake=bool(payload["isRetake"]),
        )
