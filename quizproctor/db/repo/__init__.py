from quizproctor.db.repo.code_challenges_repo import CodeChallengesRepo
from quizproctor.db.repo.daily_challenges_repo import DailyChallengesRepo
from quizproctor.db.repo.quiz_attempts_repo import QuizAttemptsRepo
from quizproctor.db.repo.quizzes_repo import QuizzesRepo
from quizproctor.db.repo.users_repo import UsersRepo

__all__ = [
    "CodeChallengesRepo",
    "DailyChallengesRepo",
    "QuizAttemptsRepo",
    "QuizzesRepo",
    "UsersRepo",
]
