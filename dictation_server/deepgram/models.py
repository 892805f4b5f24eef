"""Deepgram API response dataclasses.

WHY: The key-management endpoint returns a loose JSON object. A typed
dataclass makes the fields the server relies on explicit and fails
early when the response shape changes.

HOW: from_dict() factory, same as the other API wrappers in the package.

RULES:
- key is required; a response without it is an API error
- ttl_s is the lifetime we requested, not echoed by the API
"""

from __future__ import annotations

from dataclasses import dataclass

from dictation_server.config import DEEPGRAM_KEY_TTL_S


@dataclass
class EphemeralKey:
    """A short-lived Deepgram key scoped to live streaming."""

    key: str
    ttl_s: int = DEEPGRAM_KEY_TTL_S
    api_key_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict, ttl_s: int = DEEPGRAM_KEY_TTL_S) -> EphemeralKey:
        return cls(
            key=data["key"],
            ttl_s=ttl_s,
            api_key_id=data.get("api_key_id"),
        )
