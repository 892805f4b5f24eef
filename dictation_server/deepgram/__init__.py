"""Deepgram integration: ephemeral keys and live listen options.

WHY: The browser talks to Deepgram directly for audio. The server's
part is minting short-lived streaming keys and turning each user's
stored options into the listen URL.

HOW: client.py wraps the management API with httpx.AsyncClient,
settings.py validates options and builds the listen query.

RULES:
- All HTTP calls to Deepgram go through DeepgramClient
- The long-lived API key never leaves the server
"""

from dictation_server.deepgram.client import DeepgramAPIError, DeepgramClient
from dictation_server.deepgram.models import EphemeralKey
from dictation_server.deepgram.settings import DeepgramSettings, build_listen_query

__all__ = [
    "DeepgramAPIError",
    "DeepgramClient",
    "DeepgramSettings",
    "EphemeralKey",
    "build_listen_query",
]
