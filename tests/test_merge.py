"""Tests for TranscriptMerger.

WHY: The merger is the heart of live dictation. A stale partial that
survives a commit, or a commit that reorders words, shows up directly
as garbled text in front of the user.

HOW: Tests are organized by operation:
  - TestInitialState: empty merger
  - TestCommitFinalSegment: word splitting and partial clearing
  - TestUpdatePartial: replacement semantics and raw storage
  - TestGetText: joining rules and purity
  - TestInterleaving: realistic partial/final sequences

RULES:
- Each test builds its own merger
- No I/O, no async
"""

from __future__ import annotations

from dictation_server.core.merge import TranscriptMerger


class TestInitialState:
    """A fresh merger has no text."""

    def test_get_text_is_empty(self):
        assert TranscriptMerger().get_text() == ""

    def test_no_committed_words_or_partial(self):
        merger = TranscriptMerger()
        assert merger.committed_words == ()
        assert merger.partial == ""


class TestCommitFinalSegment:
    """commit_final_segment() splits on whitespace and clears the partial."""

    def test_commit_appends_words(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("hello world")
        assert merger.committed_words == ("hello", "world")
        assert merger.get_text() == "hello world"

    def test_commit_collapses_whitespace(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("  one \t two\n\nthree  ")
        assert merger.committed_words == ("one", "two", "three")

    def test_commit_clears_partial(self):
        merger = TranscriptMerger()
        merger.update_partial("hel")
        merger.commit_final_segment("hello")
        assert merger.partial == ""
        assert merger.get_text() == "hello"

    def test_empty_commit_still_clears_partial(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("first")
        merger.update_partial("stale")
        merger.commit_final_segment("")
        assert merger.get_text() == "first"

    def test_whitespace_only_commit_adds_nothing(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("   ")
        assert merger.committed_words == ()

    def test_commits_accumulate_in_order(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("a b")
        merger.commit_final_segment("c")
        merger.commit_final_segment("d e")
        assert merger.get_text() == "a b c d e"


class TestUpdatePartial:
    """update_partial() replaces the previous partial wholesale."""

    def test_partial_replaces_previous(self):
        merger = TranscriptMerger()
        merger.update_partial("hel")
        merger.update_partial("hello wo")
        assert merger.get_text() == "hello wo"

    def test_partial_stored_raw(self):
        merger = TranscriptMerger()
        merger.update_partial("a  b")
        assert merger.partial == "a  b"
        assert merger.get_text() == "a  b"

    def test_last_partial_wins(self):
        sequences = [
            ["a"],
            ["hel", "hello", "hello wo"],
            ["  padded  ", "x"],
            ["first", "", "  second  "],
            ["one two", "   "],
        ]
        for partials in sequences:
            merger = TranscriptMerger()
            for text in partials:
                merger.update_partial(text)
            assert merger.get_text() == partials[-1].strip()

    def test_empty_partial_clears(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("done")
        merger.update_partial("maybe")
        merger.update_partial("")
        assert merger.get_text() == "done"

    def test_partial_does_not_touch_committed(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("kept")
        merger.update_partial("x")
        assert merger.committed_words == ("kept",)


class TestGetText:
    """get_text() joins committed words and the partial."""

    def test_committed_then_partial(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("the quick")
        merger.update_partial("brown")
        assert merger.get_text() == "the quick brown"

    def test_partial_only(self):
        merger = TranscriptMerger()
        merger.update_partial("just this")
        assert merger.get_text() == "just this"

    def test_result_is_trimmed(self):
        merger = TranscriptMerger()
        merger.update_partial("  padded  ")
        assert merger.get_text() == "padded"

    def test_whitespace_partial_yields_empty(self):
        merger = TranscriptMerger()
        merger.update_partial("   ")
        assert merger.get_text() == ""

    def test_get_text_is_pure(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("one")
        merger.update_partial("two")
        assert merger.get_text() == merger.get_text() == "one two"
        assert merger.partial == "two"


class TestInterleaving:
    """Realistic recognizer sequences."""

    def test_partials_refined_then_committed(self):
        merger = TranscriptMerger()
        for hypothesis in ("I", "I want", "I want to", "I wanna go"):
            merger.update_partial(hypothesis)
        merger.commit_final_segment("I want to go")
        merger.update_partial("home")
        assert merger.get_text() == "I want to go home"

    def test_no_stale_partial_after_each_commit(self):
        merger = TranscriptMerger()
        merger.update_partial("alpha bet")
        merger.commit_final_segment("alphabet")
        merger.update_partial("soup ish")
        merger.commit_final_segment("soup")
        assert merger.get_text() == "alphabet soup"

    def test_commit_partial_commit_sequence(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("Hello world")
        assert merger.get_text() == "Hello world"
        merger.update_partial("from")
        assert merger.get_text() == "Hello world from"
        merger.commit_final_segment("from Blink")
        assert merger.get_text() == "Hello world from Blink"

    def test_repeated_final_is_not_deduplicated(self):
        merger = TranscriptMerger()
        merger.commit_final_segment("again")
        merger.commit_final_segment("again")
        assert merger.get_text() == "again again"

    def test_whitespace_partial_then_final(self):
        merger = TranscriptMerger()
        merger.update_partial("  Hello   wo  ")
        assert merger.get_text() == "Hello   wo"
        merger.commit_final_segment("Hello   world")
        assert merger.committed_words == ("Hello", "world")
        assert merger.partial == ""
        assert merger.get_text() == "Hello world"
