"""Typed events consumed by a dictation session.

WHY: Recognizer results and editor actions arrive as loose JSON over a
WebSocket. The session's consumer loop should only ever see a small,
closed set of typed events, so parsing and validation happen once, at
the edge, before anything is queued.

HOW: One dataclass per event kind. SegmentEvent.from_deepgram() pulls
the transcript and finality flag out of a Deepgram ``Results`` message.
parse_client_message() decodes a raw text frame into one of the event
types, or returns None for anything it does not understand.

RULES:
- The transcript is channel.alternatives[0].transcript; is_final defaults to False
- Missing or non-string transcripts become "" (the session ignores them)
- Any JSON object carrying "channel" is treated as a recognizer result
- Unknown or malformed frames yield None, never an exception; callers
  submit InvalidFrame so the error reply is ordered with other output
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class SegmentEvent:
    """One recognizer result: a partial hypothesis or a final segment.

    RULES:
    - is_final=False → TranscriptMerger.update_partial(transcript)
    - is_final=True → TranscriptMerger.commit_final_segment(transcript)
    """

    transcript: str
    is_final: bool = False

    @classmethod
    def from_deepgram(cls, data: dict) -> SegmentEvent:
        """Parse a Deepgram live ``Results`` message.

        HOW: Walks channel → alternatives[0] → transcript, tolerating
        any missing level. Only a literal ``True`` counts as final.
        """
        transcript = ""
        channel = data.get("channel")
        if isinstance(channel, dict):
            alternatives = channel.get("alternatives")
            if isinstance(alternatives, list) and alternatives:
                first = alternatives[0]
                if isinstance(first, dict) and isinstance(first.get("transcript"), str):
                    transcript = first["transcript"]
        return cls(transcript=transcript, is_final=data.get("is_final") is True)


@dataclass(frozen=True)
class ManualEdit:
    """The full contents of the edit surface after a keystroke or emoji insert."""

    text: str


@dataclass(frozen=True)
class ClearRequest:
    pass


@dataclass(frozen=True)
class SaveRequest:
    pass


@dataclass(frozen=True)
class InvalidFrame:
    """A client frame that could not be parsed; reported back in order."""

    detail: str = "Unrecognized message"


SessionEvent = Union[SegmentEvent, ManualEdit, ClearRequest, SaveRequest, InvalidFrame]


def parse_client_message(raw: str) -> SessionEvent | None:
    """Decode one WebSocket text frame into a session event.

    Args:
        raw: The frame payload.

    Returns:
        The parsed event, or None if the frame is not valid JSON, not an
        object, or not a recognized message type.
    """
    try:
        data: Any = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    if "channel" in data:
        return SegmentEvent.from_deepgram(data)

    kind = data.get("type")
    if kind == "edit":
        text = data.get("text")
        if not isinstance(text, str):
            return None
        return ManualEdit(text=text)
    if kind == "clear":
        return ClearRequest()
    if kind == "save":
        return SaveRequest()
    return None
