"""FastAPI application: accounts, dictations, dictionary, Deepgram keys, live sessions.

WHY: The browser needs an HTTP API for everything around a recording:
signing in, fetching a short-lived Deepgram key and listen URL, saving
and browsing dictations, and managing the phrase dictionary. It also needs a
WebSocket that runs the live transcript merge while the user dictates.

HOW: A single FastAPI app exposes REST endpoints grouped by tags and one
WebSocket endpoint. Requests are authenticated with a bearer token
issued at sign-in. Each WebSocket connection owns one DictationSession:
the receive loop parses client frames into typed events and submits
them; the session's consumer task folds them into its TranscriptMerger
and sends transcript updates back.

RULES:
- All endpoints have OpenAPI descriptions and tags
- Error responses use a consistent ErrorResponse schema
- Records owned by another user are reported as 404, never 403
- The store is a module-level singleton, like the app itself
- Unauthenticated WebSocket connections are closed with code 1008
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dictation_server import __version__
from dictation_server.config import (
    APP_ENV,
    DEFAULT_LISTEN_MODEL,
    DEFAULT_PAGE_LIMIT,
    LOG_LEVEL,
    MAX_PAGE_LIMIT,
    DeepgramNotConfiguredError,
    deepgram_configured,
)
from dictation_server.core.events import InvalidFrame, parse_client_message
from dictation_server.core.keyterms import merge_keyterms
from dictation_server.core.session import DictationSession, SessionClosedError
from dictation_server.deepgram.client import DeepgramAPIError, DeepgramClient
from dictation_server.deepgram.settings import (
    DeepgramSettings,
    build_listen_query,
    build_listen_url,
    supports_keyterms,
)
from dictation_server.server.auth import hash_password, new_token, verify_password
from dictation_server.server.models import (
    DeepgramTokenResponse,
    DictationAppendEmojiRequest,
    DictationCreateRequest,
    DictationItem,
    DictationListResponse,
    DictionaryCreateRequest,
    DictionaryEntryItem,
    DictionaryUpdateRequest,
    ErrorResponse,
    HealthResponse,
    ListenConfigResponse,
    OkResponse,
    RegisterRequest,
    SigninRequest,
    SigninResponse,
    UserResponse,
)
from dictation_server.server.store import (
    Dictation,
    DictionaryEntry,
    DuplicateEmailError,
    MemoryStore,
    User,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

store = MemoryStore()

app = FastAPI(
    title="Dictation API",
    description=(
        "Backend for a voice-dictation app. Sign in, fetch a short-lived "
        "Deepgram key and listen URL, stream recognizer results through the "
        "live session socket to get a merged, editable transcript, then save "
        "it. Manage a personal phrase dictionary that biases recognition."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"}}

# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------

_bearer = HTTPBearer(auto_error=False)


def current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(_bearer)],
) -> User:
    """Resolve the bearer token to a user or fail with 401."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = store.resolve_token(credentials.credentials)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


CurrentUser = Annotated[User, Depends(current_user)]
BearerCredentials = Annotated[Optional[HTTPAuthorizationCredentials], Depends(_bearer)]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, name=user.name, email=user.email)


def _dictation_to_item(dictation: Dictation) -> DictationItem:
    return DictationItem(
        id=dictation.id,
        text=dictation.text,
        duration_sec=dictation.duration_sec,
        created_at=_utc(dictation.created_at),
    )


def _entry_to_item(entry: DictionaryEntry) -> DictionaryEntryItem:
    return DictionaryEntryItem(
        id=entry.id,
        phrase=entry.phrase,
        weight=entry.weight,
        created_at=_utc(entry.created_at),
    )


def _query_number(raw: Optional[str], default: int) -> int:
    """Lenient integer query parsing: unparseable or zero falls back to default."""
    if raw is None:
        return default
    try:
        value = int(float(raw))
    except (ValueError, OverflowError):
        return default
    return value or default


def append_emoji(text: str, emoji: str) -> str:
    """Append an emoji after a space, then collapse whitespace runs."""
    separator = "" if text.endswith(" ") else " "
    return re.sub(r"\s+", " ", "{}{} {}".format(text, separator, emoji)).strip()


def _settings_for(user: User) -> DeepgramSettings:
    return DeepgramSettings.model_validate(store.get_deepgram_options(user.id))


# ---------------------------------------------------------------------------
# Endpoints: Auth
# ---------------------------------------------------------------------------


@app.post(
    "/auth/register",
    response_model=UserResponse,
    status_code=201,
    tags=["auth"],
    summary="Create an account",
    description="Register with a name, email, and password (at least 6 characters).",
    responses={409: {"model": ErrorResponse, "description": "Email already in use"}},
)
async def register(body: RegisterRequest) -> UserResponse:
    try:
        user = store.create_user(body.name, body.email, hash_password(body.password))
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _user_to_response(user)


@app.post(
    "/auth/signin",
    response_model=SigninResponse,
    tags=["auth"],
    summary="Sign in with email and password",
    description="Returns a bearer token to send as 'Authorization: Bearer <token>'.",
    responses={401: {"model": ErrorResponse, "description": "Invalid email or password"}},
)
async def signin(body: SigninRequest) -> SigninResponse:
    user = store.get_user_by_email(body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token = new_token()
    store.add_token(token, user.id)
    logger.info("User %s signed in", user.id)
    return SigninResponse(token=token, user=_user_to_response(user))


@app.post(
    "/auth/signout",
    status_code=204,
    tags=["auth"],
    summary="Sign out",
    description="Revoke the bearer token used for this request.",
    responses=_UNAUTHORIZED,
)
async def signout(user: CurrentUser, credentials: BearerCredentials) -> Response:
    if credentials is not None:
        store.revoke_token(credentials.credentials)
    return Response(status_code=204)


@app.get(
    "/auth/me",
    response_model=UserResponse,
    tags=["auth"],
    summary="Current user",
    description="Return the account the bearer token belongs to.",
    responses=_UNAUTHORIZED,
)
async def me(user: CurrentUser) -> UserResponse:
    return _user_to_response(user)


# ---------------------------------------------------------------------------
# Endpoints: Dictations
# ---------------------------------------------------------------------------


@app.get(
    "/dictations",
    response_model=DictationListResponse,
    tags=["dictations"],
    summary="List saved dictations",
    description=(
        "Newest first, paginated. Invalid page values fall back to 0; limit "
        "defaults to 10 and is clamped to 1–50."
    ),
    responses=_UNAUTHORIZED,
)
async def list_dictations(
    user: CurrentUser,
    page: Annotated[Optional[str], Query(description="Zero-based page number.")] = None,
    limit: Annotated[Optional[str], Query(description="Page size (1–50, default 10).")] = None,
) -> DictationListResponse:
    page_no = max(0, _query_number(page, 0))
    page_size = min(MAX_PAGE_LIMIT, max(1, _query_number(limit, DEFAULT_PAGE_LIMIT)))
    items, total = store.list_dictations(user.id, offset=page_no * page_size, limit=page_size)
    return DictationListResponse(
        items=[_dictation_to_item(d) for d in items],
        has_more=(page_no + 1) * page_size < total,
    )


@app.post(
    "/dictations",
    response_model=DictationItem,
    status_code=201,
    tags=["dictations"],
    summary="Save a dictation",
    description="Store the final edited text with its recording duration.",
    responses=_UNAUTHORIZED,
)
async def create_dictation(body: DictationCreateRequest, user: CurrentUser) -> DictationItem:
    dictation = store.create_dictation(user.id, body.text, body.duration_sec)
    return _dictation_to_item(dictation)


@app.patch(
    "/dictations/{dictation_id}",
    response_model=DictationItem,
    tags=["dictations"],
    summary="Append an emoji to a saved dictation",
    description="The only supported action is 'append_emoji'.",
    responses={
        **_UNAUTHORIZED,
        404: {"model": ErrorResponse, "description": "Dictation not found"},
    },
)
async def update_dictation(
    dictation_id: str,
    body: DictationAppendEmojiRequest,
    user: CurrentUser,
) -> DictationItem:
    current = store.get_dictation(user.id, dictation_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Not found")
    updated = store.update_dictation_text(user.id, dictation_id, append_emoji(current.text, body.emoji))
    if updated is None:
        raise HTTPException(status_code=404, detail="Not found")
    return _dictation_to_item(updated)


@app.delete(
    "/dictations/{dictation_id}",
    response_model=OkResponse,
    tags=["dictations"],
    summary="Delete a saved dictation",
    description="Permanently remove one of the current user's dictations.",
    responses={
        **_UNAUTHORIZED,
        404: {"model": ErrorResponse, "description": "Dictation not found"},
    },
)
async def delete_dictation(dictation_id: str, user: CurrentUser) -> OkResponse:
    if not store.delete_dictation(user.id, dictation_id):
        raise HTTPException(status_code=404, detail="Not found")
    return OkResponse()


# ---------------------------------------------------------------------------
# Endpoints: Dictionary
# ---------------------------------------------------------------------------


@app.get(
    "/dictionary",
    response_model=List[DictionaryEntryItem],
    tags=["dictionary"],
    summary="List dictionary entries",
    description="All of the current user's phrases, newest first.",
    responses=_UNAUTHORIZED,
)
async def list_dictionary(user: CurrentUser) -> List[DictionaryEntryItem]:
    return [_entry_to_item(e) for e in store.list_dictionary(user.id)]


@app.post(
    "/dictionary",
    response_model=DictionaryEntryItem,
    status_code=201,
    tags=["dictionary"],
    summary="Add a phrase",
    description="Add a phrase with an optional weight (0–10, default 1).",
    responses=_UNAUTHORIZED,
)
async def create_dictionary_entry(body: DictionaryCreateRequest, user: CurrentUser) -> DictionaryEntryItem:
    entry = store.create_dictionary_entry(user.id, body.phrase, body.weight)
    return _entry_to_item(entry)


@app.put(
    "/dictionary/{entry_id}",
    response_model=DictionaryEntryItem,
    tags=["dictionary"],
    summary="Update a phrase",
    description="Change the phrase, the weight, or both.",
    responses={
        **_UNAUTHORIZED,
        404: {"model": ErrorResponse, "description": "Entry not found"},
    },
)
async def update_dictionary_entry(
    entry_id: str,
    body: DictionaryUpdateRequest,
    user: CurrentUser,
) -> DictionaryEntryItem:
    entry = store.update_dictionary_entry(user.id, entry_id, phrase=body.phrase, weight=body.weight)
    if entry is None:
        raise HTTPException(status_code=404, detail="Not found")
    return _entry_to_item(entry)


@app.delete(
    "/dictionary/{entry_id}",
    response_model=OkResponse,
    tags=["dictionary"],
    summary="Delete a phrase",
    description="Remove one of the current user's dictionary entries.",
    responses={
        **_UNAUTHORIZED,
        404: {"model": ErrorResponse, "description": "Entry not found"},
    },
)
async def delete_dictionary_entry(entry_id: str, user: CurrentUser) -> OkResponse:
    if not store.delete_dictionary_entry(user.id, entry_id):
        raise HTTPException(status_code=404, detail="Not found")
    return OkResponse()


# ---------------------------------------------------------------------------
# Endpoints: Settings
# ---------------------------------------------------------------------------


@app.get(
    "/settings/deepgram",
    response_model=DeepgramSettings,
    response_model_exclude_none=True,
    tags=["settings"],
    summary="Get recognizer settings",
    description="The current user's live-recognition options ({} when never set).",
    responses=_UNAUTHORIZED,
)
async def get_deepgram_settings(user: CurrentUser) -> DeepgramSettings:
    return _settings_for(user)


@app.patch(
    "/settings/deepgram",
    response_model=DeepgramSettings,
    response_model_exclude_none=True,
    tags=["settings"],
    summary="Replace recognizer settings",
    description="Validate and store the live-recognition options.",
    responses=_UNAUTHORIZED,
)
async def update_deepgram_settings(body: DeepgramSettings, user: CurrentUser) -> DeepgramSettings:
    saved = store.set_deepgram_options(user.id, body.to_dict())
    return DeepgramSettings.model_validate(saved)


# ---------------------------------------------------------------------------
# Endpoints: Deepgram
# ---------------------------------------------------------------------------


@app.get(
    "/deepgram/token",
    response_model=DeepgramTokenResponse,
    tags=["deepgram"],
    summary="Mint an ephemeral streaming key",
    description=(
        "Create a Deepgram key scoped to live streaming that expires after "
        "60 seconds. Open the listen socket with it immediately."
    ),
    responses={
        **_UNAUTHORIZED,
        500: {"model": ErrorResponse, "description": "Deepgram not configured or rejected the request"},
        502: {"model": ErrorResponse, "description": "Unexpected error talking to Deepgram"},
    },
)
async def deepgram_token(user: CurrentUser) -> DeepgramTokenResponse:
    try:
        async with DeepgramClient() as client:
            key = await client.create_ephemeral_key(user.id)
    except DeepgramNotConfiguredError:
        logger.error("Deepgram token requested but credentials are missing")
        raise HTTPException(status_code=500, detail="Deepgram not configured")
    except DeepgramAPIError as exc:
        logger.error("Deepgram rejected key request: %s", exc.status_code)
        raise HTTPException(status_code=500, detail="Failed: {}".format(exc.message))
    except Exception:
        logger.exception("Unexpected error creating Deepgram key for user %s", user.id)
        raise HTTPException(status_code=502, detail="Deepgram error")
    return DeepgramTokenResponse(key=key.key, ttl=key.ttl_s)


@app.get(
    "/deepgram/listen",
    response_model=ListenConfigResponse,
    tags=["deepgram"],
    summary="Listen URL for the current user",
    description=(
        "The Deepgram streaming URL built from the user's settings, with "
        "dictionary phrases merged into the keyterms (highest weight first). "
        "Keyterms are only sent, and only listed, for nova-3."
    ),
    responses=_UNAUTHORIZED,
)
async def deepgram_listen(user: CurrentUser) -> ListenConfigResponse:
    settings = _settings_for(user)
    keyterms = merge_keyterms(settings.keyterm, store.list_dictionary(user.id))
    if keyterms:
        settings = settings.model_copy(update={"keyterm": keyterms})
    model = settings.model or DEFAULT_LISTEN_MODEL
    return ListenConfigResponse(
        url=build_listen_url(settings),
        query=build_listen_query(settings),
        model=model,
        keyterm=keyterms if supports_keyterms(model) else [],
    )


# ---------------------------------------------------------------------------
# Endpoints: Live session
# ---------------------------------------------------------------------------


@app.websocket("/dictation/stream")
async def dictation_stream(websocket: WebSocket, token: Optional[str] = None) -> None:
    """Run one dictation session for the lifetime of the socket.

    Client frames: Deepgram Results messages, {"type": "edit", "text"},
    {"type": "clear"}, {"type": "save"}. Server frames: "transcript",
    "cleared", "saved", and "error" messages.
    """
    user = store.resolve_token(token) if token else None
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()

    async def save(text: str, duration_sec: int) -> dict:
        dictation = store.create_dictation(user.id, text, duration_sec)
        return _dictation_to_item(dictation).model_dump(mode="json")

    session = DictationSession(publish=websocket.send_json, on_save=save)
    session.start()
    logger.info("Dictation session started for user %s", user.id)
    try:
        while True:
            raw = await websocket.receive_text()
            event = parse_client_message(raw)
            if event is None:
                event = InvalidFrame()
            await session.submit(event)
    except WebSocketDisconnect:
        pass
    except SessionClosedError:
        logger.warning("Dictation session for user %s stopped unexpectedly", user.id)
    finally:
        await session.stop()
        logger.info("Dictation session ended for user %s", user.id)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        environment=APP_ENV,
        deepgram_configured=deepgram_configured(),
    )


def run_api(host: str = "0.0.0.0", port: int = 8000, log_level: str = LOG_LEVEL) -> None:
    """Entry point for the dictation-api console script and ``serve``."""
    import uvicorn

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("Starting dictation API on %s:%d (%s)", host, port, APP_ENV)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())
