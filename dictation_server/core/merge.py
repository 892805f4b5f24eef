"""Transcript merge engine for live dictation.

WHY: A streaming recognizer emits two kinds of results for the same
audio: partial hypotheses that are resent many times per second as the
utterance grows, and final segments that are never revised. The user
may also hand-edit the text while results keep arriving. The editor
needs one linear text that never duplicates, drops, or reorders words.

HOW: Finals are authoritative and cumulative, so they are split into
tokens and appended to an append-only list. Partials are speculative
and superseding, so the latest one is kept verbatim and replaces the
previous one. The visible text is committed history plus the open
hypothesis.

RULES:
- committed words only grow; a final never rewrites earlier tokens
- a final clears the partial, even if no partial arrived since the last final
- partials are stored verbatim (interior spacing preserved)
- get_text() is trimmed and never returns stray spaces
- no deduplication: committing the same final twice repeats its words
- single writer; callers serialize access
"""

from __future__ import annotations


class TranscriptMerger:
    """Fold partial and final segment events into one transcript text.

    One instance per recording session. Discard it (create a fresh one)
    on session start, on clear, and after a successful save.
    """

    def __init__(self) -> None:
        self._committed_words: list[str] = []
        self._partial = ""

    @property
    def committed_words(self) -> tuple[str, ...]:
        return tuple(self._committed_words)

    @property
    def partial(self) -> str:
        return self._partial

    def commit_final_segment(self, segment: str) -> None:
        """Append a finalized segment and drop the open hypothesis.

        The segment is split on runs of whitespace; empty tokens are
        discarded, so an empty or blank segment appends nothing.
        """
        self._committed_words.extend(segment.split())
        self._partial = ""

    def update_partial(self, segment: str) -> None:
        """Replace the open hypothesis with ``segment`` verbatim.

        An empty string clears it. Callers may also use this to reflect
        manual edits, which are just another hypothesis about the
        in-progress text.
        """
        self._partial = segment

    def get_text(self) -> str:
        base = " ".join(self._committed_words)
        return " ".join(part for part in (base, self._partial) if part).strip()

    def __repr__(self) -> str:
        return "TranscriptMerger(committed={}, partial={!r})".format(
            len(self._committed_words), self._partial
        )
