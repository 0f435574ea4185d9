from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from quizproctor.daily.errors import (
    DailyChallengeAlreadyCompletedError,
    DailyChallengeNotFoundError,
    InvalidChallengeTypeError,
)
from quizproctor.daily.service import DailyChallengeService
from quizproctor.daily.types import ChallengeType

UTC = timezone.utc
NOW_UTC = datetime(2026, 3, 3, 23, 30, tzinfo=UTC)
TODAY = date(2026, 3, 3)


class InMemoryDailyStore:
    def __init__(self) -> None:
        self.records: dict[tuple[int, str, date], SimpleNamespace] = {}

    def add(self, *, user_id: int, challenge_type: str, challenge_id: str, completed: bool = False) -> None:
        self.records[(user_id, challenge_type, TODAY)] = SimpleNamespace(
            user_id=user_id,
            challenge_type=challenge_type,
            challenge_id=challenge_id,
            assigned_date=TODAY,
            completed=completed,
            completed_at=None,
        )

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_get_for_update(session, *, user_id, challenge_type, assigned_date):  # noqa: ANN001
            del session
            return self.records.get((user_id, challenge_type, assigned_date))

        async def fake_list(session, *, user_id, assigned_date):  # noqa: ANN001
            del session
            return [
                record
                for (record_user, _, record_date), record in self.records.items()
                if record_user == user_id and record_date == assigned_date
            ]

        async def fake_create(session, *, daily_challenge):  # noqa: ANN001
            del session
            key = (daily_challenge.user_id, daily_challenge.challenge_type, daily_challenge.assigned_date)
            self.records[key] = daily_challenge
            return daily_challenge

        monkeypatch.setattr(
            "quizproctor.daily.service.DailyChallengesRepo.get_for_user_type_date_for_update",
            fake_get_for_update,
        )
        monkeypatch.setattr("quizproctor.daily.service.DailyChallengesRepo.list_for_user_date", fake_list)
        monkeypatch.setattr("quizproctor.daily.service.DailyChallengesRepo.create", fake_create)
        monkeypatch.setattr(
            "quizproctor.daily.service.get_settings",
            lambda: SimpleNamespace(daily_challenge_timezone="UTC"),
        )


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryDailyStore:
    daily_store = InMemoryDailyStore()
    daily_store.install(monkeypatch)
    return daily_store


@pytest.mark.asyncio
async def test_forfeit_quiz_leaves_code_slot_open(store: InMemoryDailyStore) -> None:
    store.add(user_id=7, challenge_type="quiz", challenge_id="quiz-1")
    store.add(user_id=7, challenge_type="code", challenge_id="fizzbuzz")

    result = await DailyChallengeService.complete(
        object(),
        user_id=7,
        challenge_id="quiz-1",
        challenge_type="quiz",
        now_utc=NOW_UTC,
        reason="forfeit",
    )

    assert result.completed_now is True
    assert result.challenge_type == ChallengeType.QUIZ
    assert store.records[(7, "quiz", TODAY)].completed is True
    assert store.records[(7, "quiz", TODAY)].completed_at == NOW_UTC
    assert store.records[(7, "code", TODAY)].completed is False


@pytest.mark.asyncio
async def test_complete_is_idempotent(store: InMemoryDailyStore) -> None:
    store.add(user_id=7, challenge_type="quiz", challenge_id="quiz-1", completed=True)

    result = await DailyChallengeService.complete(
        object(),
        user_id=7,
        challenge_id="quiz-1",
        challenge_type=ChallengeType.QUIZ,
        now_utc=NOW_UTC,
    )

    assert result.completed_now is False
    assert store.records[(7, "quiz", TODAY)].completed_at is None


@pytest.mark.asyncio
async def test_complete_rejects_challenge_not_assigned_today(store: InMemoryDailyStore) -> None:
    store.add(user_id=7, challenge_type="quiz", challenge_id="quiz-1")

    with pytest.raises(DailyChallengeNotFoundError):
        await DailyChallengeService.complete(
            object(),
            user_id=7,
            challenge_id="quiz-2",
            challenge_type="quiz",
            now_utc=NOW_UTC,
        )


@pytest.mark.asyncio
async def test_complete_rejects_unknown_type(store: InMemoryDailyStore) -> None:
    with pytest.raises(InvalidChallengeTypeError):
        await DailyChallengeService.complete(
            object(),
            user_id=7,
            challenge_id="quiz-1",
            challenge_type="essay",
            now_utc=NOW_UTC,
        )


@pytest.mark.asyncio
async def test_ensure_startable_blocks_consumed_slot(store: InMemoryDailyStore) -> None:
    store.add(user_id=7, challenge_type="quiz", challenge_id="quiz-1", completed=True)
    store.add(user_id=7, challenge_type="code", challenge_id="fizzbuzz")

    with pytest.raises(DailyChallengeAlreadyCompletedError):
        await DailyChallengeService.ensure_startable(
            object(),
            user_id=7,
            challenge_id="quiz-1",
            challenge_type="quiz",
            now_utc=NOW_UTC,
        )
    record = await DailyChallengeService.ensure_startable(
        object(),
        user_id=7,
        challenge_id="fizzbuzz",
        challenge_type="code",
        now_utc=NOW_UTC,
    )
    assert record.completed is False


@pytest.mark.asyncio
async def test_get_today_assigns_missing_types_once(
    store: InMemoryDailyStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    user = SimpleNamespace(id=7, level=2, current_career_path_id=None)
    quiz = SimpleNamespace(id="quiz-1", title="Capitals", difficulty="beginner", xp_reward=50)
    challenge = SimpleNamespace(id="fizzbuzz", title="FizzBuzz", difficulty="easy", xp_reward=120)
    excluded: list[set[str]] = []

    async def fake_get_user(session, user_id):  # noqa: ANN001
        del session, user_id
        return user

    async def fake_recent(session, *, user_id, limit):  # noqa: ANN001
        del session, user_id
        assert limit == 10
        return ["quiz-old"]

    async def fake_list_quizzes(session, *, career_path_id, max_required_level, exclude_ids):  # noqa: ANN001
        del session, career_path_id
        assert max_required_level == 2
        excluded.append(set(exclude_ids))
        return [quiz]

    async def fake_list_code(session, *, career_path_id, max_required_level):  # noqa: ANN001
        del session, career_path_id, max_required_level
        return [challenge]

    async def fake_get_quiz(session, quiz_id):  # noqa: ANN001
        del session
        return quiz if quiz_id == quiz.id else None

    async def fake_get_code(session, challenge_id):  # noqa: ANN001
        del session
        return challenge if challenge_id == challenge.id else None

    monkeypatch.setattr("quizproctor.daily.service.UsersRepo.get_by_id", fake_get_user)
    monkeypatch.setattr("quizproctor.daily.service.QuizAttemptsRepo.list_recent_quiz_ids", fake_recent)
    monkeypatch.setattr("quizproctor.daily.service.QuizzesRepo.list_available", fake_list_quizzes)
    monkeypatch.setattr("quizproctor.daily.service.CodeChallengesRepo.list_available", fake_list_code)
    monkeypatch.setattr("quizproctor.daily.service.QuizzesRepo.get_by_id", fake_get_quiz)
    monkeypatch.setattr("quizproctor.daily.service.CodeChallengesRepo.get_by_id", fake_get_code)

    first = await DailyChallengeService.get_today(object(), user_id=7, now_utc=NOW_UTC)
    second = await DailyChallengeService.get_today(object(), user_id=7, now_utc=NOW_UTC)

    assert first.assigned_date == TODAY
    assert first.quiz_challenge is not None
    assert first.quiz_challenge.challenge_id == "quiz-1"
    assert first.code_challenge is not None
    assert first.code_challenge.challenge_id == "fizzbuzz"
    assert first.all_completed is False
    assert second == first
    assert len(store.records) == 2
    assert excluded == [{"quiz-old"}]


@pytest.mark.asyncio
async def test_get_today_for_unknown_user_is_empty(
    store: InMemoryDailyStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def fake_get_user(session, user_id):  # noqa: ANN001
        del session, user_id
        return None

    monkeypatch.setattr("quizproctor.daily.service.UsersRepo.get_by_id", fake_get_user)

    today = await DailyChallengeService.get_today(object(), user_id=99, now_utc=NOW_UTC)

    assert today.quiz_challenge is None
    assert today.code_challenge is None
    assert store.records == {}
