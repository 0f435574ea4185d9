from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class CanonicalQuestion:
    question_id: str
    correct_answer: str
    category: str | None = None


@dataclass(frozen=True, slots=True)
class GradedQuestion:
    question_id: str
    selected_answer: str | None
    is_correct: bool
    category: str | None = None


@dataclass(frozen=True, slots=True)
class GradedAnswers:
    questions: tuple[GradedQuestion, ...]
    correct_answers: int
    total_questions: int
    score: float


@dataclass(frozen=True, slots=True)
class LevelOutcome:
    previous_level: int
    new_level: int
    total_xp: int
    xp: int
    leveled_up: bool
    reached_milestone: bool


@dataclass(slots=True)
class QuizSubmissionResult:
    attempt_id: UUID
    quiz_id: str
    score: float
    correct_answers: int
    total_questions: int
    xp_earned: int
    leveled_up: bool
    new_level: int
    reached_level_20: bool
    is_retake: bool
    total_xp: int
    xp: int


@dataclass(slots=True)
class QuestionView:
    question_id: str
    text: str
    options: tuple[str, ...]
    category: str | None = None


@dataclass(slots=True)
class QuizView:
    quiz_id: str
    title: str
    description: str
    difficulty: str
    career_path_id: str | None
    required_level: int
    xp_reward: int
    time_limit_seconds: int | None
    is_final_assessment: bool
    is_practice: bool


@dataclass(slots=True)
class QuestionSet:
    quiz: QuizView
    questions: list[QuestionView]
