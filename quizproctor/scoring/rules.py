"""Pure scoring rules.

Correctness is exact equality between the submitted option text and the stored
``correct_answer`` text, never option position. Question order is shuffled per
session. Switching to index comparison is a behaviour change, not a refactor.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from quizproctor.scoring.types import CanonicalQuestion, GradedAnswers, GradedQuestion, LevelOutcome

PATH_SELECTION_AI_GUIDED = "ai-guided"


def percentage_score(correct_answers: int, total_questions: int) -> float:
    if total_questions <= 0:
        return 0.0
    return round(correct_answers / total_questions * 100, 1)


def grade_answers(
    questions: Iterable[CanonicalQuestion],
    answers: Mapping[str, str],
) -> GradedAnswers:
    """Grades a submitted answer map against the canonical question set.

    Entries keyed by unknown question ids are ignored; questions with no entry
    count as incorrect.
    """
    graded: list[GradedQuestion] = []
    for question in questions:
        selected = answers.get(question.question_id)
        if selected is not None and not isinstance(selected, str):
            selected = None
        graded.append(
            GradedQuestion(
                question_id=question.question_id,
                selected_answer=selected,
                is_correct=selected is not None and selected == question.correct_answer,
                category=question.category,
            )
        )

    correct_answers = sum(1 for item in graded if item.is_correct)
    return GradedAnswers(
        questions=tuple(graded),
        correct_answers=correct_answers,
        total_questions=len(graded),
        score=percentage_score(correct_answers, len(graded)),
    )


def compute_xp_award(
    *,
    xp_reward: int,
    correct_answers: int,
    total_questions: int,
    is_retake: bool,
    was_tab_switched: bool,
) -> int:
    if is_retake or was_tab_switched:
        return 0
    if total_questions <= 0 or xp_reward <= 0:
        return 0
    return (xp_reward * correct_answers) // total_questions


def level_for_total_xp(total_xp: int, *, xp_per_level: int) -> int:
    return max(0, total_xp) // xp_per_level + 1


def awaits_path_recommendation(*, path_selection_mode: str, has_completed_interest_assessment: bool) -> bool:
    """Only AI-guided users who still owe the interest assessment unlock the milestone."""
    return path_selection_mode == PATH_SELECTION_AI_GUIDED and not has_completed_interest_assessment


def resolve_level_outcome(
    *,
    previous_level: int,
    total_xp: int,
    xp_per_level: int,
    milestone_level: int,
    milestone_eligible: bool,
) -> LevelOutcome:
    new_level = level_for_total_xp(total_xp, xp_per_level=xp_per_level)
    return LevelOutcome(
        previous_level=previous_level,
        new_level=new_level,
        total_xp=total_xp,
        xp=max(0, total_xp) % xp_per_level,
        leveled_up=new_level > previous_level,
        reached_milestone=milestone_eligible and previous_level < milestone_level <= new_level,
    )
