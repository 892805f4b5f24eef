"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field bounds at runtime and generate the JSON Schema
that appears in the /docs UI.

HOW: One model per request body and per response shape. Store records
are converted to response models in the app module, so password hashes
and owner ids never reach a client.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Timestamps are serialized as ISO 8601 UTC datetimes
- Response models never expose internal implementation details
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

_EMOJI_MAX_UNITS = 4


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Body for POST /auth/register."""

    name: str = Field(min_length=1, description="Display name.")
    email: EmailStr = Field(description="Email address, used to sign in.")
    password: str = Field(min_length=6, description="Password (at least 6 characters).")


class SigninRequest(BaseModel):
    """Body for POST /auth/signin."""

    email: EmailStr = Field(description="Registered email address.")
    password: str = Field(min_length=6, description="Account password.")


class UserResponse(BaseModel):
    id: str = Field(description="User identifier.")
    name: str = Field(description="Display name.")
    email: str = Field(description="Email address.")


class SigninResponse(BaseModel):
    token: str = Field(description="Bearer token for the Authorization header.")
    user: UserResponse = Field(description="The signed-in user.")


# ---------------------------------------------------------------------------
# Dictations
# ---------------------------------------------------------------------------


class DictationCreateRequest(BaseModel):
    """Body for POST /dictations."""

    text: str = Field(min_length=1, description="Final edited dictation text.")
    duration_sec: int = Field(ge=0, description="Recording length in whole seconds.")


class DictationAppendEmojiRequest(BaseModel):
    """Body for PATCH /dictations/{id}.

    RULES:
    - action must be "append_emoji"
    - emoji is 1–4 UTF-16 code units, so one emoji with a modifier fits
    """

    action: Literal["append_emoji"] = Field(description="Update action.")
    emoji: str = Field(min_length=1, description="Emoji to append to the text.")

    @field_validator("emoji")
    @classmethod
    def check_emoji_length(cls, value: str) -> str:
        if len(value.encode("utf-16-le")) // 2 > _EMOJI_MAX_UNITS:
            raise ValueError("Emoji is too long")
        return value


class DictationItem(BaseModel):
    id: str = Field(description="Dictation identifier.")
    text: str = Field(description="Saved text.")
    duration_sec: int = Field(description="Recording length in seconds.")
    created_at: datetime = Field(description="When the dictation was saved (UTC).")


class DictationListResponse(BaseModel):
    """One page of dictations, newest first."""

    items: List[DictationItem] = Field(description="Dictations on this page.")
    has_more: bool = Field(description="True when a later page exists.")


# ---------------------------------------------------------------------------
# Dictionary
# ---------------------------------------------------------------------------


class DictionaryCreateRequest(BaseModel):
    """Body for POST /dictionary."""

    phrase: str = Field(min_length=1, description="Word or phrase to boost during recognition.")
    weight: float = Field(
        default=1.0,
        ge=0,
        le=10,
        description="Priority 0–10. Higher-weighted phrases are sent to the recognizer first.",
    )


class DictionaryUpdateRequest(BaseModel):
    """Body for PUT /dictionary/{id}. Omitted fields are left unchanged."""

    phrase: Optional[str] = Field(default=None, min_length=1, description="New phrase.")
    weight: Optional[float] = Field(default=None, ge=0, le=10, description="New weight (0–10).")


class DictionaryEntryItem(BaseModel):
    id: str = Field(description="Entry identifier.")
    phrase: str = Field(description="The phrase.")
    weight: float = Field(description="Priority 0–10.")
    created_at: datetime = Field(description="When the entry was created (UTC).")


# ---------------------------------------------------------------------------
# Deepgram
# ---------------------------------------------------------------------------


class DeepgramTokenResponse(BaseModel):
    key: str = Field(description="Ephemeral Deepgram key scoped to live streaming.")
    ttl: int = Field(description="Seconds until the key expires.", json_schema_extra={"example": 60})


class ListenConfigResponse(BaseModel):
    """Everything a client needs to open the Deepgram streaming socket."""

    url: str = Field(description="Full wss:// listen URL including the query string.")
    query: str = Field(description="The query string alone.")
    model: str = Field(description="Recognition model in effect.")
    keyterm: List[str] = Field(
        description="Keyterms sent to the recognizer (settings first, then dictionary); empty for models without keyterm support."
    )


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class OkResponse(BaseModel):
    ok: bool = Field(default=True, description="Always true.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    timestamp: datetime = Field(description="Server time (UTC).")
    environment: str = Field(description="Deployment environment name.")
    deepgram_configured: bool = Field(description="True when Deepgram credentials are present.")
