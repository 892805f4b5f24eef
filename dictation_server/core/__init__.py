"""Core dictation logic: transcript merging and the live session around it.

WHY: The core package holds the one piece of real algorithmic design,
the transcript merger, and the editor policy that drives it. It has no
knowledge of HTTP, storage, or the recognizer's API.

HOW: merge.py defines TranscriptMerger, events.py the typed session
events, typing_gate.py the idle-timeout gate, session.py the bounded
single-consumer loop, keyterms.py the dictionary-to-keyterm merge.

RULES:
- Nothing in core imports from server or deepgram
- The merger never raises on any string input
"""

from dictation_server.core.merge import TranscriptMerger

__all__ = ["TranscriptMerger"]
