"""Dictation server: live voice dictation with an editable, mergeable transcript.

WHY: A streaming recognizer emits a stream of revisable partial results
and committed final segments. Users want to watch that text grow, edit
it while they speak, and save it. This package owns the merge of those
results into one readable transcript, plus the account, storage, and
recognizer-key plumbing around it.

HOW: Three layers: core (merger, typing gate, session loop),
deepgram (ephemeral keys, listen options), server (FastAPI app and
in-memory store). Each layer is independently testable.

RULES:
- Core never imports from server or deepgram
- The recognizer's long-lived API key never leaves the server
"""

__version__ = "0.1.0"
