class ScoringError(Exception):
    pass


class QuizNotFoundError(ScoringError):
    pass


class UserNotFoundError(ScoringError):
    pass


class CodeChallengeNotFoundError(ScoringError):
    pass
