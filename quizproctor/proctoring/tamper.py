from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

import structlog

from quizproctor.core.config import Settings, get_settings
from quizproctor.proctoring.types import TamperSignal, TamperViolation

logger = structlog.get_logger("quizproctor.proctoring.tamper")

TAB_ACCELERATOR_KEY = "Tab"


class FocusProbe(Protocol):
    def is_hidden(self) -> bool: ...

    def has_focus(self) -> bool: ...

    def active_element_is_frame(self) -> bool: ...


class TamperDetector:
    """Turns raw focus/visibility/keyboard signals into confirmed violations.

    Visibility-hidden and the Alt/Meta+Tab accelerator are trusted at once.
    Blur and focus-out are re-checked against the probe after the debounce
    window so that in-page widgets (dropdowns, embedded frames) do not trip it.
    The ``violated`` flag is one-shot: only ``reset()`` clears it.
    """

    def __init__(
        self,
        *,
        probe: FocusProbe,
        on_violation: Callable[[TamperViolation], None] | None = None,
        debounce_seconds: float = 0.3,
        warning_seconds: float = 3.0,
    ) -> None:
        self._probe = probe
        self._on_violation = on_violation
        self._debounce_seconds = debounce_seconds
        self._warning_seconds = warning_seconds
        self._armed = False
        self._violated = False
        self._violation_count = 0
        self._show_warning = False
        self._pending: set[asyncio.TimerHandle] = set()
        self._warning_handle: asyncio.TimerHandle | None = None

    @classmethod
    def from_settings(
        cls,
        *,
        probe: FocusProbe,
        on_violation: Callable[[TamperViolation], None] | None = None,
        settings: Settings | None = None,
    ) -> TamperDetector:
        resolved = settings or get_settings()
        return cls(
            probe=probe,
            on_violation=on_violation,
            debounce_seconds=resolved.tamper_debounce_ms / 1000,
            warning_seconds=resolved.tamper_warning_seconds,
        )

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def violated(self) -> bool:
        return self._violated

    @property
    def violation_count(self) -> int:
        return self._violation_count

    @property
    def show_warning(self) -> bool:
        return self._show_warning

    def arm(self) -> None:
        if self._armed:
            return
        self._armed = True
        logger.debug("tamper_detection_armed")

    def disarm(self) -> None:
        self._armed = False
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        logger.debug("tamper_detection_disarmed")

    def reset(self) -> None:
        """Clears all state; only valid before a brand new attempt."""
        self.disarm()
        if self._warning_handle is not None:
            self._warning_handle.cancel()
            self._warning_handle = None
        self._violated = False
        self._violation_count = 0
        self._show_warning = False

    def on_visibility_change(self) -> None:
        if not self._armed:
            return
        if self._probe.is_hidden():
            self._confirm(TamperSignal.VISIBILITY_HIDDEN)

    def on_window_blur(self) -> None:
        if not self._armed:
            return
        self._schedule(self._recheck_blur)

    def on_focus_out(self, *, has_related_target: bool) -> None:
        if not self._armed or has_related_target:
            return
        self._schedule(self._recheck_focus_out)

    def on_key_down(self, key: str, *, alt: bool = False, meta: bool = False) -> None:
        if not self._armed:
            return
        if key == TAB_ACCELERATOR_KEY and (alt or meta):
            self._confirm(TamperSignal.TAB_SHORTCUT)

    def simulate_violation(self) -> None:
        self._confirm(TamperSignal.SIMULATED)

    def _schedule(self, callback: Callable[[], None]) -> None:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def _fire() -> None:
            self._pending.discard(handle)
            callback()

        handle = loop.call_later(self._debounce_seconds, _fire)
        self._pending.add(handle)

    def _recheck_blur(self) -> None:
        if not self._armed:
            return
        if self._probe.active_element_is_frame():
            logger.debug("tamper_signal_suppressed", signal=TamperSignal.WINDOW_BLUR.value, reason="frame_focus")
            return
        if self._probe.has_focus():
            logger.debug("tamper_signal_suppressed", signal=TamperSignal.WINDOW_BLUR.value, reason="document_focused")
            return
        self._confirm(TamperSignal.WINDOW_BLUR)

    def _recheck_focus_out(self) -> None:
        if not self._armed:
            return
        # hidden documents are counted by the visibility path
        if self._probe.has_focus() or self._probe.is_hidden():
            logger.debug("tamper_signal_suppressed", signal=TamperSignal.FOCUS_OUT.value, reason="focus_retained")
            return
        self._confirm(TamperSignal.FOCUS_OUT)

    def _confirm(self, signal: TamperSignal) -> None:
        self._violated = True
        self._violation_count += 1
        self._raise_warning()
        violation = TamperViolation(signal=signal, violation_count=self._violation_count)
        logger.warning(
            "tamper_violation_detected",
            signal=signal.value,
            violation_count=self._violation_count,
        )
        if self._on_violation is not None:
            self._on_violation(violation)

    def _raise_warning(self) -> None:
        self._show_warning = True
        if self._warning_handle is not None:
            self._warning_handle.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._warning_handle = None
            return
        self._warning_handle = loop.call_later(self._warning_seconds, self._clear_warning)

    def _clear_warning(self) -> None:
        self._warning_handle = None
        self._show_warning = False
