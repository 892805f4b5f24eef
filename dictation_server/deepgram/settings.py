"""Per-user Deepgram streaming options and the listen query builder.

WHY: Users tune live recognition (model, punctuation, utterance
splitting, keyterms, find/replace) from a settings form. The options are
stored as-is and turned into the query string of the streaming
WebSocket URL each time a recording starts.

HOW: DeepgramSettings is a pydantic model that validates the stored
options. build_listen_query() maps a settings object onto Deepgram's
listen parameters, dropping combinations the live API rejects.

RULES:
- model is nova-2 or nova-3; nova-2 is the default
- language is always "en"
- utt_split requires utterances, so setting it forces utterances=true
- keyterm is only sent for nova-3 (comma-joined)
- each replace item becomes its own replace= parameter
- Python 3.9+ compatible (no PEP 604 unions in pydantic fields)
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from dictation_server.config import (
    DEEPGRAM_LISTEN_URL,
    DEFAULT_LISTEN_LANGUAGE,
    DEFAULT_LISTEN_MODEL,
    KEYTERM_MAX_CHARS,
)

_KEYTERM_MODELS = ("nova-3",)

_BOOLEAN_FLAGS = ("smart_format", "punctuate", "paragraphs", "utterances", "profanity_filter")

Keyterm = Annotated[str, Field(min_length=1, max_length=KEYTERM_MAX_CHARS)]
ReplaceRule = Annotated[str, Field(min_length=1, max_length=128)]


class DeepgramSettings(BaseModel):
    """Validated live-recognition options for one user.

    Unknown keys are dropped. Every field is optional; an empty object
    means "use the defaults".
    """

    model_config = ConfigDict(extra="ignore")

    model: Optional[Literal["nova-2", "nova-3"]] = Field(
        default=None, description="Recognition model."
    )
    smart_format: Optional[bool] = Field(default=None, description="Apply smart formatting.")
    punctuate: Optional[bool] = Field(default=None, description="Add punctuation and capitalization.")
    paragraphs: Optional[bool] = Field(default=None, description="Split output into paragraphs.")
    utterances: Optional[bool] = Field(default=None, description="Segment speech into utterances.")
    utt_split: Optional[int] = Field(
        default=None,
        ge=100,
        le=5000,
        description="Silence (ms) that ends an utterance. Implies utterances.",
    )
    profanity_filter: Optional[bool] = Field(default=None, description="Mask profanity.")
    keyterm: Optional[List[Keyterm]] = Field(
        default=None,
        max_length=50,
        description="Terms to boost (nova-3 only).",
    )
    replace: Optional[List[ReplaceRule]] = Field(
        default=None,
        max_length=50,
        description="Find/replace rules as 'find:replace'.",
    )

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


def build_listen_query(settings: Optional[DeepgramSettings]) -> str:
    """Build the query string for the Deepgram live listen endpoint.

    Args:
        settings: The user's options, or None for defaults only.

    Returns:
        A form-encoded query string (no leading '?').
    """
    model = (settings.model if settings else None) or DEFAULT_LISTEN_MODEL
    params = {"model": model, "language": DEFAULT_LISTEN_LANGUAGE}
    if settings is None:
        return urlencode(params)

    if settings.utt_split:
        params["utterances"] = "true"
    for flag in _BOOLEAN_FLAGS:
        if getattr(settings, flag):
            params[flag] = "true"
    if settings.utt_split:
        params["utt_split"] = str(settings.utt_split)
    if supports_keyterms(model) and settings.keyterm:
        params["keyterm"] = ",".join(settings.keyterm)

    pairs = list(params.items())
    for rule in settings.replace or []:
        pairs.append(("replace", rule))
    return urlencode(pairs)


def build_listen_url(settings: Optional[DeepgramSettings]) -> str:
    return "{}?{}".format(DEEPGRAM_LISTEN_URL, build_listen_query(settings))


def supports_keyterms(model: Optional[str]) -> bool:
    """Only nova-3 accepts keyterm prompting."""
    return (model or DEFAULT_LISTEN_MODEL) in _KEYTERM_MODELS
