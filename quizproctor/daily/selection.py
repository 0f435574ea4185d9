from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import date

from quizproctor.daily.types import ChallengeCandidate, ChallengeType

EASY_DIFFICULTIES = frozenset({"beginner", "easy"})
HARD_DIFFICULTIES = frozenset({"advanced", "hard"})
# date.weekday(): Monday=0 ... Sunday=6
EASIER_WEEKDAYS = frozenset({0, 5})
HARDER_WEEKDAYS = frozenset({2, 4})


def difficulty_band_for_level(level: int) -> tuple[str, ...]:
    if level < 3:
        return ("beginner", "easy")
    if level < 7:
        return ("easy", "beginner", "medium")
    if level < 12:
        return ("easy", "medium")
    if level < 18:
        return ("medium", "intermediate")
    return ("medium", "intermediate", "hard", "advanced")


def _is_suitable(candidate: ChallengeCandidate, *, band: tuple[str, ...], weekday: int) -> bool:
    difficulty = candidate.difficulty.strip().lower()
    if difficulty in band:
        return True
    if weekday in EASIER_WEEKDAYS and difficulty in EASY_DIFFICULTIES:
        return True
    return weekday in HARDER_WEEKDAYS and difficulty in HARD_DIFFICULTIES


def selection_seed(*, user_id: int, assigned_date: date, challenge_type: ChallengeType) -> str:
    return f"{user_id}:{assigned_date.isoformat()}:{challenge_type.value}"


def pick_daily_candidate(
    candidates: Sequence[ChallengeCandidate],
    *,
    user_level: int,
    user_id: int,
    assigned_date: date,
    challenge_type: ChallengeType,
) -> ChallengeCandidate | None:
    """Picks one candidate for the day, favouring the user's difficulty band.

    The pick is deterministic for a (user, day, type) triple so that a lost
    insert race resolves to the same challenge.
    """
    if not candidates:
        return None

    band = difficulty_band_for_level(user_level)
    weekday = assigned_date.weekday()
    suitable = [item for item in candidates if _is_suitable(item, band=band, weekday=weekday)]
    pool = sorted(suitable or candidates, key=lambda item: item.challenge_id)

    rng = random.Random(
        selection_seed(user_id=user_id, assigned_date=assigned_date, challenge_type=challenge_type)
    )
    return pool[rng.randrange(len(pool))]
