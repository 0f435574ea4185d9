from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def shuffled(items: Sequence[T], *, rng: random.Random | None = None) -> list[T]:
    """Returns a Fisher-Yates shuffled copy; the input sequence is left untouched."""
    result = list(items)
    (rng or random).shuffle(result)
    return result
