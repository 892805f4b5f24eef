"""Configuration constants, Deepgram defaults, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Recognizer endpoints, typing-suppression timing,
paging bounds, and keyterm limits are plain data, not buried in
logic, so they can be tuned without reading the code that uses them.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values with os.getenv overrides. The
load_deepgram_credentials() function reads the secrets at call time and
provides a clear error when they are missing.

RULES:
- Deepgram credentials are loaded from .env via python-dotenv, never hardcoded
- Credentials are read at call time so tests can patch the environment
- All non-secret defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the server is started from)
load_dotenv()

# ---------------------------------------------------------------------------
# Deepgram
# ---------------------------------------------------------------------------

DEEPGRAM_BASE_URL = os.getenv("DEEPGRAM_BASE_URL", "https://api.deepgram.com/v1")
DEEPGRAM_LISTEN_URL = os.getenv("DEEPGRAM_LISTEN_URL", "wss://api.deepgram.com/v1/listen")

DEEPGRAM_KEY_TTL_S = 60
"""Lifetime of an ephemeral streaming key. Clients must connect within it."""

DEEPGRAM_KEY_SCOPES: list[str] = ["usage:write", "listen:stream"]

DEFAULT_LISTEN_MODEL = "nova-2"
DEFAULT_LISTEN_LANGUAGE = "en"

KEYTERM_MAX_CHARS = 64
KEYTERM_MAX_MERGED = 100

# ---------------------------------------------------------------------------
# Dictation session
# ---------------------------------------------------------------------------

TYPING_IDLE_S = int(os.getenv("TYPING_IDLE_MS", "400")) / 1000.0
SESSION_QUEUE_SIZE = int(os.getenv("SESSION_QUEUE_SIZE", "256"))

# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 50

# bcrypt cost factor (log2 of the key-expansion rounds)
PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "10"))

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class DeepgramNotConfiguredError(ValueError):
    """Raised when the Deepgram API key or project id is missing."""


def load_deepgram_credentials() -> tuple[str, str]:
    """Load the Deepgram API key and project id from the environment.

    WHY: Minting ephemeral streaming keys requires both the long-lived
    API key and the project it belongs to. Loading them from the
    environment (via .env) keeps them out of source code.

    HOW: Reads DEEPGRAM_API_KEY and DEEPGRAM_PROJECT_ID from os.environ
    (populated by python-dotenv).

    RULES:
    - Raises DeepgramNotConfiguredError if either value is missing or empty
    - Never returns a default/placeholder value

    Returns:
        (api_key, project_id)
    """
    api_key = os.getenv("DEEPGRAM_API_KEY", "").strip()
    project_id = os.getenv("DEEPGRAM_PROJECT_ID", "").strip()
    if not api_key or not project_id:
        raise DeepgramNotConfiguredError(
            "Deepgram not configured. "
            "Add DEEPGRAM_API_KEY and DEEPGRAM_PROJECT_ID to the .env file."
        )
    return api_key, project_id


def deepgram_configured() -> bool:
    """Return True when both Deepgram credentials are present."""
    try:
        load_deepgram_credentials()
    except DeepgramNotConfiguredError:
        return False
    return True
