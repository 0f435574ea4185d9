from __future__ import annotations

import random
from datetime import date, datetime, timezone

from quizproctor.core.ordering import shuffled
from quizproctor.core.time import challenge_local_date

UTC = timezone.utc


def test_challenge_local_date_defaults_to_utc_midnight() -> None:
    assert challenge_local_date(datetime(2026, 3, 3, 23, 59, tzinfo=UTC)) == date(2026, 3, 3)
    assert challenge_local_date(datetime(2026, 3, 4, 0, 0, tzinfo=UTC)) == date(2026, 3, 4)


def test_challenge_local_date_respects_configured_zone() -> None:
    now_utc = datetime(2026, 3, 3, 23, 30, tzinfo=UTC)

    assert challenge_local_date(now_utc, tz_name="Europe/Berlin") == date(2026, 3, 4)


def test_shuffled_returns_permutation_and_keeps_input() -> None:
    items = list(range(20))

    result = shuffled(items, rng=random.Random(3))

    assert sorted(result) == items
    assert items == list(range(20))
    assert result != items
