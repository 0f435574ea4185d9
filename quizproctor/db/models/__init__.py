from quizproctor.db.models.challenge_attempts import ChallengeAttempt
from quizproctor.db.models.code_challenges import CodeChallenge
from quizproctor.db.models.daily_challenges import DailyChallenge
from quizproctor.db.models.question_attempts import QuestionAttempt
from quizproctor.db.models.quiz_attempts import QuizAttempt
from quizproctor.db.models.quiz_questions import QuizQuestion
from quizproctor.db.models.quizzes import Quiz
from quizproctor.db.models.users import User

__all__ = [
    "ChallengeAttempt",
    "CodeChallenge",
    "DailyChallenge",
    "QuestionAttempt",
    "Quiz",
    "QuizAttempt",
    "QuizQuestion",
    "User",
]
