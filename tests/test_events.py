"""Tests for WebSocket frame parsing into session events.

WHY: Everything the browser sends passes through parse_client_message()
before reaching the session. A parse bug either crashes the socket or
feeds garbage into the merger.

HOW:
  - TestSegmentFromDeepgram: transcript and finality extraction
  - TestParseClientMessage: message type dispatch and rejection
"""

from __future__ import annotations

import json

from dictation_server.core.events import (
    ClearRequest,
    ManualEdit,
    SaveRequest,
    SegmentEvent,
    parse_client_message,
)


class TestSegmentFromDeepgram:
    """SegmentEvent.from_deepgram() reads channel.alternatives[0]."""

    def test_partial_result(self, make_result):
        event = SegmentEvent.from_deepgram(make_result("hello wor"))
        assert event == SegmentEvent(transcript="hello wor", is_final=False)

    def test_final_result(self, make_result):
        event = SegmentEvent.from_deepgram(make_result("hello world", is_final=True))
        assert event.is_final is True
        assert event.transcript == "hello world"

    def test_missing_is_final_defaults_false(self, make_result):
        data = make_result("x")
        del data["is_final"]
        assert SegmentEvent.from_deepgram(data).is_final is False

    def test_truthy_non_bool_is_final_not_final(self, make_result):
        data = make_result("x")
        data["is_final"] = "yes"
        assert SegmentEvent.from_deepgram(data).is_final is False

    def test_no_alternatives_gives_empty_transcript(self):
        event = SegmentEvent.from_deepgram({"channel": {"alternatives": []}, "is_final": True})
        assert event.transcript == ""

    def test_malformed_channel_gives_empty_transcript(self):
        assert SegmentEvent.from_deepgram({"channel": "nope"}).transcript == ""
        assert SegmentEvent.from_deepgram({"channel": {"alternatives": [{"transcript": 5}]}}).transcript == ""


class TestParseClientMessage:
    """parse_client_message() maps frames to events or None."""

    def test_deepgram_result(self, final_result):
        event = parse_client_message(json.dumps(final_result))
        assert event == SegmentEvent(transcript="hello world", is_final=True)

    def test_edit(self):
        event = parse_client_message(json.dumps({"type": "edit", "text": "fixed text"}))
        assert event == ManualEdit(text="fixed text")

    def test_edit_with_empty_text(self):
        assert parse_client_message('{"type": "edit", "text": ""}') == ManualEdit(text="")

    def test_edit_without_text_rejected(self):
        assert parse_client_message('{"type": "edit"}') is None
        assert parse_client_message('{"type": "edit", "text": 3}') is None

    def test_clear_and_save(self):
        assert parse_client_message('{"type": "clear"}') == ClearRequest()
        assert parse_client_message('{"type": "save"}') == SaveRequest()

    def test_invalid_json(self):
        assert parse_client_message("{not json") is None

    def test_non_object(self):
        assert parse_client_message("[1, 2]") is None
        assert parse_client_message('"edit"') is None

    def test_unknown_type(self):
        assert parse_client_message('{"type": "Metadata"}') is None
