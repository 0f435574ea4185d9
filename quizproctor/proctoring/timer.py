from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

logger = structlog.get_logger("quizproctor.proctoring.timer")


class CountdownTimer:
    """Per-session countdown firing ``on_expire`` at most once.

    A missing or non-positive limit leaves the timer inert.
    """

    def __init__(
        self,
        *,
        time_limit_seconds: int | None,
        on_expire: Callable[[], None],
        tick_seconds: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self._remaining = time_limit_seconds if time_limit_seconds and time_limit_seconds > 0 else None
        self._on_expire = on_expire
        self._tick_seconds = tick_seconds
        self._on_tick = on_tick
        self._task: asyncio.Task[None] | None = None
        self._expired = False

    @property
    def is_inert(self) -> bool:
        return self._remaining is None

    @property
    def remaining_seconds(self) -> int | None:
        return self._remaining

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_inert or self._expired or self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        # expiry callbacks may stop the timer from inside its own task
        if task is asyncio.current_task():
            return
        task.cancel()

    async def _run(self) -> None:
        assert self._remaining is not None
        while self._remaining > 0:
            await asyncio.sleep(self._tick_seconds)
            self._remaining -= 1
            if self._on_tick is not None:
                self._on_tick(self._remaining)
        self._fire()

    def _fire(self) -> None:
        if self._expired:
            return
        self._expired = True
        logger.info("countdown_expired")
        self._on_expire()
