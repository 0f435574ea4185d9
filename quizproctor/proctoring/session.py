from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Callable

import structlog

from quizproctor.core.config import Settings, get_settings
from quizproctor.core.ordering import shuffled
from quizproctor.proctoring.errors import (
    DailyChallengeConsumedError,
    ForfeitNotAllowedError,
    ForfeitNotRequestedError,
    IncompleteSubmissionError,
    InvalidAnswerOptionError,
    QuizNotFoundError,
    SessionStateError,
    SubmissionFailedError,
    TransportError,
)
from quizproctor.proctoring.tamper import FocusProbe, TamperDetector
from quizproctor.proctoring.timer import CountdownTimer
from quizproctor.proctoring.transport import AssessmentTransport
from quizproctor.proctoring.types import (
    SCORING_STATES,
    ScoreReport,
    SessionQuestion,
    SessionQuiz,
    SessionState,
    SubmissionPayload,
    TamperViolation,
)

logger = structlog.get_logger("quizproctor.proctoring.session")

DAILY_CHALLENGE_TYPE_QUIZ = "quiz"
_OPEN_STATES = frozenset({SessionState.LOADING, SessionState.READY, SessionState.IN_PROGRESS})


class ProctoredQuizSession:
    """One proctored attempt at a quiz, from load to a single terminal state.

    Every terminal transition goes through ``_finalize``, which closes the
    finalized latch synchronously. Timer expiry, a tamper violation and a
    user click arriving in the same tick therefore produce exactly one
    network submission.
    """

    def __init__(
        self,
        *,
        quiz_id: str,
        transport: AssessmentTransport,
        probe: FocusProbe,
        is_daily_challenge: bool = False,
        is_practice: bool = False,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if is_daily_challenge and is_practice:
            raise ValueError("practice sessions are never daily challenges")
        resolved = settings or get_settings()
        self.quiz_id = quiz_id
        self.is_daily_challenge = is_daily_challenge
        self.is_practice = is_practice
        self._transport = transport
        self._rng = rng
        self._clock = clock
        self._tick_seconds = resolved.timer_tick_seconds
        self._detector = TamperDetector.from_settings(
            probe=probe,
            on_violation=self._on_violation,
            settings=resolved,
        )
        self._timer: CountdownTimer | None = None

        self._state = SessionState.LOADING
        self._quiz: SessionQuiz | None = None
        self._questions: list[SessionQuestion] = []
        self._answers: dict[str, int] = {}
        self._current_index = 0
        self._started_at: float | None = None

        self._finalized = False
        self._forfeit_requested = False
        self._payload: SubmissionPayload | None = None
        self._submission_task: asyncio.Task[ScoreReport | None] | None = None
        self.result: ScoreReport | None = None
        self.submission_error: Exception | None = None
        self.validation_message: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def quiz(self) -> SessionQuiz | None:
        return self._quiz

    @property
    def questions(self) -> list[SessionQuestion]:
        return list(self._questions)

    @property
    def answers(self) -> dict[str, int]:
        return dict(self._answers)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> SessionQuestion | None:
        if not self._questions:
            return None
        return self._questions[self._current_index]

    @property
    def detector(self) -> TamperDetector:
        """Signal sink for the environment's visibility, focus and key events."""
        return self._detector

    @property
    def remaining_seconds(self) -> int | None:
        return None if self._timer is None else self._timer.remaining_seconds

    @property
    def tab_switched(self) -> bool:
        return self._detector.violated

    @property
    def violation_count(self) -> int:
        return self._detector.violation_count

    @property
    def show_warning(self) -> bool:
        return self._detector.show_warning

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def is_submitting(self) -> bool:
        return self._submission_task is not None and not self._submission_task.done()

    @property
    def forfeit_requested(self) -> bool:
        return self._forfeit_requested

    @property
    def payload(self) -> SubmissionPayload | None:
        return self._payload

    async def load(self) -> None:
        if self._state is not SessionState.LOADING:
            raise SessionStateError(f"cannot load from {self._state.value}")
        try:
            question_set = await self._transport.fetch_question_set(
                self.quiz_id,
                is_daily_challenge=self.is_daily_challenge,
            )
        except QuizNotFoundError:
            self._state = SessionState.NOT_FOUND
            logger.info("session_quiz_not_found", quiz_id=self.quiz_id)
            raise
        except DailyChallengeConsumedError:
            self._state = SessionState.ALREADY_COMPLETED
            logger.info("session_daily_challenge_consumed", quiz_id=self.quiz_id)
            raise
        if self._state is not SessionState.LOADING:
            # closed while the question set was in flight
            return
        if not question_set.questions:
            self._state = SessionState.NOT_FOUND
            logger.info("session_quiz_not_found", quiz_id=self.quiz_id, reason="no_questions")
            raise QuizNotFoundError(self.quiz_id)

        self._quiz = question_set.quiz
        self._questions = shuffled(question_set.questions, rng=self._rng)
        self._timer = CountdownTimer(
            time_limit_seconds=question_set.quiz.time_limit_seconds,
            on_expire=self._on_timer_expired,
            tick_seconds=self._tick_seconds,
        )
        self._state = SessionState.READY
        logger.info(
            "session_ready",
            quiz_id=self.quiz_id,
            question_count=len(self._questions),
            time_limit_seconds=question_set.quiz.time_limit_seconds,
        )

    def begin(self) -> None:
        if self._state is not SessionState.READY:
            raise SessionStateError(f"cannot begin from {self._state.value}")
        self._state = SessionState.IN_PROGRESS
        self._started_at = self._clock()
        self._detector.reset()
        self._detector.arm()
        assert self._timer is not None
        self._timer.start()
        logger.info("session_started", quiz_id=self.quiz_id, is_daily_challenge=self.is_daily_challenge)

    def close(self) -> None:
        """Tears the session down. An unfinished attempt is abandoned and never scored.

        A submission already in flight still completes.
        """
        if not self._finalized and self._state in _OPEN_STATES:
            self._finalize(SessionState.ABANDONED)
        else:
            self._release_watchers()
        self._forfeit_requested = False

    async def __aenter__(self) -> ProctoredQuizSession:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def select_answer(self, question_id: str, option_index: int) -> None:
        if self._state is not SessionState.IN_PROGRESS or self._finalized:
            raise SessionStateError(f"cannot answer in {self._state.value}")
        question = self._find_question(question_id)
        if not 0 <= option_index < len(question.options):
            raise InvalidAnswerOptionError(
                f"option {option_index} is out of range for question {question_id}"
            )
        self._answers[question_id] = option_index
        self.validation_message = None

    def go_to(self, index: int) -> SessionQuestion:
        if not 0 <= index < len(self._questions):
            raise IndexError(index)
        self._current_index = index
        return self._questions[index]

    def next_question(self) -> SessionQuestion:
        return self.go_to(min(self._current_index + 1, len(self._questions) - 1))

    def previous_question(self) -> SessionQuestion:
        return self.go_to(max(self._current_index - 1, 0))

    def missing_question_ids(self) -> list[str]:
        return [q.question_id for q in self._questions if q.question_id not in self._answers]

    async def submit(self) -> ScoreReport | None:
        """Explicit submission; the only path that requires every answer."""
        if self._finalized:
            logger.info("session_submission_dropped", quiz_id=self.quiz_id, state=self._state.value)
            return None
        if self._state is not SessionState.IN_PROGRESS:
            raise SessionStateError(f"cannot submit from {self._state.value}")
        missing = self.missing_question_ids()
        if missing:
            self.validation_message = "Please answer all questions before submitting."
            raise IncompleteSubmissionError(missing)
        if not self._finalize(SessionState.SUBMITTED):
            return None
        return await self._start_submission()

    def request_forfeit(self) -> None:
        if not self.is_daily_challenge:
            raise ForfeitNotAllowedError("only daily challenges can be forfeited")
        if self._finalized or self._state not in (SessionState.READY, SessionState.IN_PROGRESS):
            raise SessionStateError(f"cannot forfeit from {self._state.value}")
        self._forfeit_requested = True

    def cancel_forfeit(self) -> None:
        self._forfeit_requested = False

    async def confirm_forfeit(self) -> bool:
        if not self._forfeit_requested:
            raise ForfeitNotRequestedError("request_forfeit() must be called first")
        if not self._finalize(SessionState.FORFEITED):
            return False
        await self._start_submission()
        return True

    async def retry_submission(self) -> ScoreReport | None:
        if not self._finalized or self._state not in SCORING_STATES | {SessionState.FORFEITED}:
            raise SessionStateError(f"nothing to retry in {self._state.value}")
        if self._submission_task is not None and not self._submission_task.done():
            return await self._submission_task
        if self.submission_error is None:
            return self.result
        logger.info("session_submission_retry", quiz_id=self.quiz_id, state=self._state.value)
        return await self._start_submission()

    async def wait_for_submission(self) -> ScoreReport | None:
        if self._submission_task is None:
            return self.result
        return await self._submission_task

    def _find_question(self, question_id: str) -> SessionQuestion:
        for question in self._questions:
            if question.question_id == question_id:
                return question
        raise InvalidAnswerOptionError(f"unknown question {question_id}")

    def _release_watchers(self) -> None:
        self._detector.disarm()
        if self._timer is not None:
            self._timer.cancel()

    def _finalize(self, terminal_state: SessionState) -> bool:
        if self._finalized:
            return False
        self._finalized = True
        self._forfeit_requested = False
        self._release_watchers()
        self._state = terminal_state
        if terminal_state in SCORING_STATES:
            self._payload = self._build_payload(
                was_tab_switched=terminal_state is SessionState.TERMINATED_BY_VIOLATION,
            )
        logger.info(
            "session_finalized",
            quiz_id=self.quiz_id,
            state=terminal_state.value,
            answered=len(self._answers),
            total=len(self._questions),
        )
        return True

    def _build_payload(self, *, was_tab_switched: bool) -> SubmissionPayload:
        by_id = {question.question_id: question for question in self._questions}
        answers = {
            question_id: by_id[question_id].options[index]
            for question_id, index in self._answers.items()
        }
        time_spent = None
        if self._started_at is not None:
            time_spent = max(0, int(self._clock() - self._started_at))
        return SubmissionPayload(
            quiz_id=self.quiz_id,
            answers=answers,
            was_tab_switched=was_tab_switched,
            is_daily_challenge=self.is_daily_challenge,
            time_spent_seconds=time_spent,
        )

    def _start_submission(self) -> asyncio.Task[ScoreReport | None]:
        task = asyncio.get_running_loop().create_task(self._send())
        task.add_done_callback(_consume_task_error)
        self._submission_task = task
        return task

    async def _send(self) -> ScoreReport | None:
        self.submission_error = None
        try:
            if self._state is SessionState.FORFEITED:
                await self._transport.complete_daily_challenge(
                    challenge_id=self.quiz_id,
                    challenge_type=DAILY_CHALLENGE_TYPE_QUIZ,
                )
                logger.info("session_forfeited", quiz_id=self.quiz_id)
                return None
            assert self._payload is not None
            if self.is_practice:
                report = await self._transport.submit_practice(self._payload)
            else:
                report = await self._transport.submit_quiz(self._payload)
        except (TransportError, QuizNotFoundError) as exc:
            self.submission_error = exc
            logger.warning(
                "session_submission_failed",
                quiz_id=self.quiz_id,
                state=self._state.value,
                error=str(exc),
            )
            raise SubmissionFailedError(str(exc)) from exc
        self.result = report
        logger.info(
            "session_submission_scored",
            quiz_id=self.quiz_id,
            state=self._state.value,
            score=report.score,
            xp_earned=report.xp_earned,
            is_retake=report.is_retake,
        )
        return report

    def _on_violation(self, violation: TamperViolation) -> None:
        if self._state is not SessionState.IN_PROGRESS:
            return
        if self._finalize(SessionState.TERMINATED_BY_VIOLATION):
            logger.warning(
                "session_terminated_by_violation",
                quiz_id=self.quiz_id,
                signal=violation.signal.value,
            )
            self._start_submission()

    def _on_timer_expired(self) -> None:
        if self._state is not SessionState.IN_PROGRESS:
            return
        if self._finalize(SessionState.TERMINATED_BY_TIMEOUT):
            self._start_submission()


def _consume_task_error(task: asyncio.Task) -> None:
    # forced submissions are not awaited by a caller; errors live on the session
    if not task.cancelled():
        task.exception()

