from __future__ import annotations


class ProctoringError(Exception):
    pass


class SessionStateError(ProctoringError):
    pass


class IncompleteSubmissionError(ProctoringError):
    def __init__(self, missing_question_ids: list[str]) -> None:
        super().__init__("Please answer all questions before submitting.")
        self.missing_question_ids = missing_question_ids


class InvalidAnswerOptionError(ProctoringError):
    pass


class ForfeitNotAllowedError(ProctoringError):
    pass


class ForfeitNotRequestedError(ProctoringError):
    pass


class SubmissionFailedError(ProctoringError):
    pass


class QuizNotFoundError(ProctoringError):
    pass


class TransportError(ProctoringError):
    pass


class DailyChallengeConsumedError(ProctoringError):
    """Today's slot for this challenge is already used up; retrying cannot help."""
