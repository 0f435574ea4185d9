from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class ChallengeType(str, Enum):
    QUIZ = "quiz"
    CODE = "code"


@dataclass(frozen=True, slots=True)
class ChallengeCandidate:
    challenge_id: str
    title: str
    difficulty: str
    xp_reward: int


@dataclass(slots=True)
class DailyChallengeView:
    challenge_id: str
    challenge_type: ChallengeType
    title: str
    difficulty: str
    xp_reward: int
    completed: bool


@dataclass(slots=True)
class TodayChallenges:
    assigned_date: date
    quiz_challenge: DailyChallengeView | None
    code_challenge: DailyChallengeView | None

    @property
    def all_completed(self) -> bool:
        offered = [item for item in (self.quiz_challenge, self.code_challenge) if item is not None]
        return all(item.completed for item in offered)


@dataclass(slots=True)
class DailyCompletionResult:
    challenge_id: str
    challenge_type: ChallengeType
    assigned_date: date
    completed_now: bool
