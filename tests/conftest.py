"""Shared test fixtures for the dictation_server test suite.

WHY: Several test modules need the same recognizer messages and a
cheap password hash. Centralizing them here keeps the sample data in
one place.

HOW: PASSWORD_HASH_ROUNDS is lowered before dictation_server is
imported, so registering users in API tests stays fast. Fixtures build
Deepgram live ``Results`` messages in the shape the browser forwards.

RULES:
- Environment overrides are set before any dictation_server import
- Deepgram credentials are removed by default; tests that need them
  set them with monkeypatch
"""

import os

os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

from typing import Any, Dict  # noqa: E402

import pytest  # noqa: E402


def deepgram_result(transcript: str, is_final: bool = False) -> Dict[str, Any]:
    """A Deepgram live Results message with one alternative."""
    return {
        "type": "Results",
        "channel_index": [0, 1],
        "duration": 1.02,
        "start": 0.0,
        "is_final": is_final,
        "speech_final": is_final,
        "channel": {
            "alternatives": [
                {"transcript": transcript, "confidence": 0.98, "words": []},
            ],
        },
    }


@pytest.fixture
def partial_result():
    return deepgram_result("hello wor", is_final=False)


@pytest.fixture
def final_result():
    return deepgram_result("hello world", is_final=True)


@pytest.fixture(autouse=True)
def _no_deepgram_credentials(monkeypatch):
    """Keep a developer's .env from leaking into tests."""
    monkeypatch.delenv("DEEPGRAM_API_KEY", raising=False)
    monkeypatch.delenv("DEEPGRAM_PROJECT_ID", raising=False)


@pytest.fixture
def make_result():
    """Factory fixture: make_result(transcript, is_final=False)."""
    return deepgram_result
