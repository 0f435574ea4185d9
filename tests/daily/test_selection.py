from __future__ import annotations

from datetime import date

import pytest

from quizproctor.daily.selection import difficulty_band_for_level, pick_daily_candidate
from quizproctor.daily.types import ChallengeCandidate, ChallengeType

CANDIDATES = [
    ChallengeCandidate(challenge_id="q-easy", title="Easy", difficulty="beginner", xp_reward=50),
    ChallengeCandidate(challenge_id="q-mid", title="Mid", difficulty="medium", xp_reward=80),
    ChallengeCandidate(challenge_id="q-hard", title="Hard", difficulty="advanced", xp_reward=120),
]
TUESDAY = date(2026, 3, 3)
WEDNESDAY = date(2026, 3, 4)


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (1, ("beginner", "easy")),
        (5, ("easy", "beginner", "medium")),
        (10, ("easy", "medium")),
        (15, ("medium", "intermediate")),
        (25, ("medium", "intermediate", "hard", "advanced")),
    ],
)
def test_difficulty_band_for_level(level: int, expected: tuple[str, ...]) -> None:
    assert difficulty_band_for_level(level) == expected


def test_pick_daily_candidate_is_stable_for_user_day_and_type() -> None:
    picks = {
        pick_daily_candidate(
            list(reversed(CANDIDATES)) if attempt % 2 else CANDIDATES,
            user_level=25,
            user_id=42,
            assigned_date=TUESDAY,
            challenge_type=ChallengeType.QUIZ,
        )
        for attempt in range(6)
    }

    assert len(picks) == 1


def test_pick_daily_candidate_prefers_level_band() -> None:
    picked = pick_daily_candidate(
        CANDIDATES,
        user_level=1,
        user_id=42,
        assigned_date=TUESDAY,
        challenge_type=ChallengeType.QUIZ,
    )

    assert picked is not None
    assert picked.challenge_id == "q-easy"


def test_pick_daily_candidate_harder_weekday_widens_pool() -> None:
    picks = {
        pick_daily_candidate(
            CANDIDATES,
            user_level=1,
            user_id=user_id,
            assigned_date=WEDNESDAY,
            challenge_type=ChallengeType.QUIZ,
        ).challenge_id
        for user_id in range(1, 60)
    }

    assert "q-hard" in picks
    assert "q-mid" not in picks


def test_pick_daily_candidate_falls_back_to_any_candidate() -> None:
    only_hard = [CANDIDATES[2]]

    picked = pick_daily_candidate(
        only_hard,
        user_level=1,
        user_id=42,
        assigned_date=TUESDAY,
        challenge_type=ChallengeType.CODE,
    )

    assert picked == CANDIDATES[2]


def test_pick_daily_candidate_without_candidates() -> None:
    assert (
        pick_daily_candidate(
            [],
            user_level=1,
            user_id=42,
            assigned_date=TUESDAY,
            challenge_type=ChallengeType.CODE,
        )
        is None
    )
