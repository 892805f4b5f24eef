"""Idle-timeout gate that tracks whether the user is actively typing.

WHY: A live recognizer update must not stomp on a correction the user
is in the middle of typing. While keystrokes keep arriving, external
updates are withheld from the visible text; once the user pauses for
the idle window, updates flow again.

HOW: Each keystroke calls touch(), which pushes the deadline to
now + idle_s. is_typing() compares the clock against that deadline.
The clock is injectable so tests can drive time explicitly.

RULES:
- A gate that was never touched is not typing
- Every touch() restarts the full idle window (debounce, not throttle)
- remaining() is 0.0 once the window has elapsed
"""

from __future__ import annotations

import time
from collections.abc import Callable

from dictation_server.config import TYPING_IDLE_S


class TypingGate:
    def __init__(
        self,
        idle_s: float = TYPING_IDLE_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_s = idle_s
        self._clock = clock
        self._deadline: float | None = None

    def touch(self) -> None:
        self._deadline = self._clock() + self.idle_s

    def is_typing(self) -> bool:
        return self.remaining() > 0.0

    def remaining(self) -> float:
        """Seconds left in the current idle window."""
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self._clock())

    def reset(self) -> None:
        self._deadline = None
