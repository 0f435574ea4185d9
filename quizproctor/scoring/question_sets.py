from __future__ import annotations

import random

from sqlalchemy.ext.asyncio import AsyncSession

from quizproctor.core.ordering import shuffled
from quizproctor.db.models.quiz_questions import QuizQuestion
from quizproctor.db.models.quizzes import Quiz
from quizproctor.db.repo.quizzes_repo import QuizzesRepo
from quizproctor.scoring.errors import QuizNotFoundError
from quizproctor.scoring.types import QuestionSet, QuestionView, QuizView


def _quiz_view(quiz: Quiz) -> QuizView:
    return QuizView(
        quiz_id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        difficulty=quiz.difficulty,
        career_path_id=quiz.career_path_id,
        required_level=quiz.required_level,
        xp_reward=quiz.xp_reward,
        time_limit_seconds=quiz.time_limit_seconds,
        is_final_assessment=quiz.is_final_assessment,
        is_practice=quiz.is_practice,
    )


def _question_view(question: QuizQuestion) -> QuestionView:
    # correct_answer never leaves the server
    return QuestionView(
        question_id=question.id,
        text=question.question_text,
        options=tuple(question.options),
        category=question.category,
    )


async def load_question_set(
    session: AsyncSession,
    *,
    quiz_id: str,
    rng: random.Random | None = None,
) -> QuestionSet:
    """Loads a quiz for presentation with a fresh question order.

    Option order inside each question is kept as stored.
    """
    quiz = await QuizzesRepo.get_by_id(session, quiz_id)
    if quiz is None:
        raise QuizNotFoundError
    questions = await QuizzesRepo.list_questions(session, quiz_id=quiz.id)
    if not questions:
        raise QuizNotFoundError
    return QuestionSet(
        quiz=_quiz_view(quiz),
        questions=[_question_view(question) for question in shuffled(questions, rng=rng)],
    )
