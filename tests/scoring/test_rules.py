from __future__ import annotations

import pytest

from quizproctor.scoring.rules import (
    awaits_path_recommendation,
    compute_xp_award,
    grade_answers,
    level_for_total_xp,
    percentage_score,
    resolve_level_outcome,
)
from quizproctor.scoring.types import CanonicalQuestion

QUESTIONS = (
    CanonicalQuestion(question_id="q1", correct_answer="Paris", category="geo"),
    CanonicalQuestion(question_id="q2", correct_answer="4", category="math"),
    CanonicalQuestion(question_id="q3", correct_answer="H2O", category="chem"),
)


@pytest.mark.parametrize(
    ("correct", "total", "expected"),
    [
        (3, 3, 100.0),
        (1, 3, 33.3),
        (2, 3, 66.7),
        (0, 3, 0.0),
        (0, 0, 0.0),
    ],
)
def test_percentage_score_rounds_to_one_decimal(correct: int, total: int, expected: float) -> None:
    assert percentage_score(correct, total) == expected


def test_grade_answers_compares_option_text_not_position() -> None:
    graded = grade_answers(QUESTIONS, {"q1": "Paris", "q2": "4", "q3": "H2O"})

    assert graded.correct_answers == 3
    assert graded.total_questions == 3
    assert graded.score == 100.0


def test_grade_answers_counts_missing_answers_as_incorrect() -> None:
    graded = grade_answers(QUESTIONS, {"q1": "Lyon"})

    assert graded.correct_answers == 0
    assert graded.total_questions == 3
    assert [item.selected_answer for item in graded.questions] == ["Lyon", None, None]
    assert all(item.is_correct is False for item in graded.questions)


def test_grade_answers_ignores_unknown_ids_and_non_text_values() -> None:
    graded = grade_answers(QUESTIONS, {"q1": "Paris", "q2": 4, "zz": "H2O"})  # type: ignore[dict-item]

    assert graded.correct_answers == 1
    assert graded.total_questions == 3
    assert graded.questions[1].selected_answer is None


def test_grade_answers_is_exact_match() -> None:
    graded = grade_answers(QUESTIONS, {"q1": "paris", "q3": "H2O "})

    assert graded.correct_answers == 0


def test_grade_answers_is_deterministic() -> None:
    answers = {"q1": "Paris", "q2": "5"}

    assert grade_answers(QUESTIONS, answers) == grade_answers(QUESTIONS, answers)


@pytest.mark.parametrize(
    ("correct", "total", "is_retake", "was_tab_switched", "expected"),
    [
        (3, 3, False, False, 100),
        (2, 3, False, False, 66),
        (1, 3, False, False, 33),
        (3, 3, True, False, 0),
        (3, 3, False, True, 0),
        (0, 0, False, False, 0),
    ],
)
def test_compute_xp_award(
    correct: int,
    total: int,
    is_retake: bool,
    was_tab_switched: bool,
    expected: int,
) -> None:
    assert (
        compute_xp_award(
            xp_reward=100,
            correct_answers=correct,
            total_questions=total,
            is_retake=is_retake,
            was_tab_switched=was_tab_switched,
        )
        == expected
    )


@pytest.mark.parametrize(
    ("total_xp", "expected"),
    [(0, 1), (999, 1), (1000, 2), (19_000, 20), (-5, 1)],
)
def test_level_for_total_xp(total_xp: int, expected: int) -> None:
    assert level_for_total_xp(total_xp, xp_per_level=1000) == expected


def test_resolve_level_outcome_flags_milestone_crossing_only_once() -> None:
    crossed = resolve_level_outcome(
        previous_level=19,
        total_xp=19_050,
        xp_per_level=1000,
        milestone_level=20,
        milestone_eligible=True,
    )
    already_there = resolve_level_outcome(
        previous_level=20,
        total_xp=20_050,
        xp_per_level=1000,
        milestone_level=20,
        milestone_eligible=True,
    )

    assert crossed.leveled_up is True
    assert crossed.new_level == 20
    assert crossed.xp == 50
    assert crossed.reached_milestone is True
    assert already_there.new_level == 21
    assert already_there.reached_milestone is False


def test_resolve_level_outcome_ignores_milestone_for_ineligible_user() -> None:
    outcome = resolve_level_outcome(
        previous_level=19,
        total_xp=19_050,
        xp_per_level=1000,
        milestone_level=20,
        milestone_eligible=False,
    )

    assert outcome.leveled_up is True
    assert outcome.new_level == 20
    assert outcome.reached_milestone is False


@pytest.mark.parametrize(
    ("mode", "assessed", "expected"),
    [
        ("ai-guided", False, True),
        ("ai-guided", True, False),
        ("manual", False, False),
    ],
)
def test_awaits_path_recommendation(mode: str, assessed: bool, expected: bool) -> None:
    assert (
        awaits_path_recommendation(path_selection_mode=mode, has_completed_interest_assessment=assessed)
        is expected
    )
