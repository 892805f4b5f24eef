"""Single-writer dictation session around a TranscriptMerger.

WHY: Recognizer results, manual edits, and clear/save requests all
arrive asynchronously from the client, but the merger is a plain
single-threaded structure. The session turns those producers into one
ordered stream and applies the editor policy around the merger:
typing suppression, resync after the idle window, and the
clear/save lifecycle.

HOW: Producers call submit(), which awaits space on a bounded
asyncio.Queue (backpressure instead of unbounded growth). One consumer
task, started by start(), is the only code that touches the merger.
After each recognizer event it reads the merger text and publishes an
update; if the user is typing, the visible text is left alone and a
resync is scheduled for when the typing gate's window elapses.

RULES:
- Only the consumer task mutates the merger or the visible text
- Events with an empty transcript are dropped before they reach the merger
- Manual edits replace the visible text and are pushed into the merger
  as the partial, then restart the typing window
- A suppressed update leaves visible_text unchanged; the next resync
  copies the merger text into it
- clear and a successful save replace the merger with a fresh instance
- save is a no-op when the visible text is blank
- stop() drains queued events, then ends the consumer (cancelled after 5s)
- A producer waiting on a full queue is released with SessionClosedError
  if the consumer ends first
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from dictation_server.config import SESSION_QUEUE_SIZE
from dictation_server.core.events import (
    ClearRequest,
    InvalidFrame,
    ManualEdit,
    SaveRequest,
    SegmentEvent,
    SessionEvent,
)
from dictation_server.core.merge import TranscriptMerger
from dictation_server.core.typing_gate import TypingGate

logger = logging.getLogger(__name__)

PublishFn = Callable[[dict], Awaitable[None]]
SaveFn = Callable[[str, int], Awaitable[Any]]

_STOP_TIMEOUT_S = 5.0


class SessionClosedError(RuntimeError):
    """Raised when an event is submitted to a session that is not running."""


@dataclass
class TranscriptUpdate:
    """Snapshot published to the client after a recognizer event or resync.

    RULES:
    - text: the merger's current full text
    - final_text / live_text: text split before its last word, for a
      two-tone live preview
    - visible_text: what the edit surface should show
    - suppressed: True when visible_text was withheld because the user is typing
    """

    text: str
    final_text: str
    live_text: str
    visible_text: str
    suppressed: bool

    def to_message(self) -> dict:
        return {
            "type": "transcript",
            "text": self.text,
            "final_text": self.final_text,
            "live_text": self.live_text,
            "visible_text": self.visible_text,
            "suppressed": self.suppressed,
        }


def split_live_tail(text: str) -> tuple[str, str]:
    """Split text into (everything but the last word, the last word)."""
    words = text.split()
    if not words:
        return "", ""
    return " ".join(words[:-1]), words[-1]


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def estimate_duration_sec(text: str, started_at: float | None, now: float) -> int:
    """Duration to store with a saved dictation.

    The elapsed recording time when a start time is known; otherwise a
    rough estimate of two words per second. Never less than 1.
    """
    if started_at is not None:
        return max(1, _round_half_up(now - started_at))
    return max(1, _round_half_up(len(text.split()) / 2))


class DictationSession:
    """One recording session: a merger, the visible text, and the typing gate."""

    def __init__(
        self,
        publish: PublishFn,
        on_save: SaveFn | None = None,
        gate: TypingGate | None = None,
        queue_size: int = SESSION_QUEUE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._publish = publish
        self._on_save = on_save
        self._clock = clock
        self.gate = gate or TypingGate(clock=clock)
        self._queue: asyncio.Queue[SessionEvent | None] = asyncio.Queue(maxsize=queue_size)
        self._task: asyncio.Task | None = None
        self._resync_pending = False
        self.merger = TranscriptMerger()
        self.visible_text = ""
        self.started_at: float | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._task is not None:
            return
        self.started_at = self._clock()
        self._task = asyncio.create_task(self.run())

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def submit(self, event: SessionEvent) -> None:
        """Queue an event for the consumer. Waits while the queue is full.

        Raises SessionClosedError if the session is not running, or if the
        consumer ends while this call is waiting for queue space.
        """
        task = self._task
        if task is None or task.done():
            raise SessionClosedError("Dictation session is not running")
        if not await self._enqueue(event, task):
            raise SessionClosedError("Dictation session stopped before the event was queued")

    async def _enqueue(self, item: SessionEvent | None, task: asyncio.Task) -> bool:
        """Put item on the queue unless the consumer task finishes first."""
        try:
            self._queue.put_nowait(item)
            return True
        except asyncio.QueueFull:
            pass
        put = asyncio.ensure_future(self._queue.put(item))
        try:
            await asyncio.wait({put, task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not put.done():
                put.cancel()
        return put.done() and not put.cancelled()

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            await self._enqueue(None, task)
        try:
            await asyncio.wait_for(task, timeout=_STOP_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.warning("Dictation session did not drain in %.0fs, cancelling", _STOP_TIMEOUT_S)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        except Exception:
            # Usually the client went away while an update was being sent.
            logger.warning("Dictation session ended with an error", exc_info=True)

    async def run(self) -> None:
        """Consumer loop. Sole owner of the merger while the session runs."""
        while True:
            if self._resync_pending and not self.gate.is_typing():
                await self._resync()
                continue
            timeout = self.gate.remaining() if self._resync_pending else None
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout)
            except asyncio.TimeoutError:
                continue
            if event is None:
                break
            await self.handle(event)

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    async def handle(self, event: SessionEvent) -> None:
        if isinstance(event, SegmentEvent):
            await self._apply_segment(event)
        elif isinstance(event, ManualEdit):
            self._apply_edit(event)
        elif isinstance(event, ClearRequest):
            self.reset()
            await self._publish({"type": "cleared"})
        elif isinstance(event, InvalidFrame):
            await self._publish({"type": "error", "detail": event.detail})
        elif isinstance(event, SaveRequest):
            await self._save()

    async def _apply_segment(self, event: SegmentEvent) -> None:
        if not event.transcript:
            return
        if event.is_final:
            self.merger.commit_final_segment(event.transcript)
        else:
            self.merger.update_partial(event.transcript)

        text = self.merger.get_text()
        suppressed = self.gate.is_typing()
        if suppressed:
            self._resync_pending = True
        else:
            self.visible_text = text
            self._resync_pending = False
        await self._publish(self._snapshot(text, suppressed).to_message())

    def _apply_edit(self, event: ManualEdit) -> None:
        self.visible_text = event.text
        self.merger.update_partial(event.text)
        self.gate.touch()

    async def _resync(self) -> None:
        self._resync_pending = False
        text = self.merger.get_text()
        self.visible_text = text
        await self._publish(self._snapshot(text, False).to_message())

    async def _save(self) -> None:
        text = self.visible_text.strip()
        if not text:
            logger.debug("Save requested with empty text, ignoring")
            return
        if self._on_save is None:
            await self._publish({"type": "error", "detail": "Saving is not available"})
            return

        duration = estimate_duration_sec(text, self.started_at, self._clock())
        try:
            saved = await self._on_save(text, duration)
        except Exception:
            logger.exception("Failed to save dictation (%d chars)", len(text))
            await self._publish({"type": "error", "detail": "Save failed"})
            return

        self.reset()
        await self._publish({"type": "saved", "dictation": saved})

    def reset(self) -> None:
        """Discard the merger and the visible text."""
        self.merger = TranscriptMerger()
        self.visible_text = ""
        self.gate.reset()
        self._resync_pending = False

    def _snapshot(self, text: str, suppressed: bool) -> TranscriptUpdate:
        final_text, live_text = split_live_tail(text)
        return TranscriptUpdate(
            text=text,
            final_text=final_text,
            live_text=live_text,
            visible_text=self.visible_text,
            suppressed=suppressed,
        )
