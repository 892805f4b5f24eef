"""Async HTTP client for the Deepgram management API.

WHY: Browsers stream audio straight to Deepgram, but they must never
see the project's long-lived API key. The server mints a short-lived
key scoped to live streaming for each recording and hands only that to
the client.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. DeepgramClient is an
async context manager: enter it to get an authenticated client, exit
to close the connection pool. create_ephemeral_key() posts to the
project's key endpoint with a 60s time-to-live.

RULES:
- Always use the async context manager (async with DeepgramClient() as client:)
- Authentication is "Authorization: Token <api key>" (Deepgram's scheme)
- Ephemeral keys get scopes usage:write and listen:stream only
- The project id is logged redacted; the API key is never logged
- A transport can be injected for tests (httpx.MockTransport)
"""

from __future__ import annotations

import logging

import httpx

from dictation_server.config import (
    DEEPGRAM_BASE_URL,
    DEEPGRAM_KEY_SCOPES,
    DEEPGRAM_KEY_TTL_S,
    load_deepgram_credentials,
)
from dictation_server.deepgram.models import EphemeralKey

logger = logging.getLogger(__name__)


class DeepgramAPIError(Exception):
    """Raised when the Deepgram API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Deepgram API error {status_code}: {message}")


def redact(value: str) -> str:
    """Keep the first and last four characters of an identifier."""
    return f"{value[:4]}...{value[-4:]}"


class DeepgramClient:
    """Async client for Deepgram project key management.

    RULES:
    - api_key and project_id default to load_deepgram_credentials(), which
      raises DeepgramNotConfiguredError when either is missing
    - base_url defaults to DEEPGRAM_BASE_URL from config
    """

    def __init__(
        self,
        api_key: str | None = None,
        project_id: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if api_key is None or project_id is None:
            env_key, env_project = load_deepgram_credentials()
            api_key = api_key or env_key
            project_id = project_id or env_project
        self._api_key = api_key
        self._project_id = project_id
        self._base_url = (base_url or DEEPGRAM_BASE_URL).rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> DeepgramClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Token {self._api_key}"},
            timeout=httpx.Timeout(30.0, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "DeepgramClient must be used as an async context manager: "
                "async with DeepgramClient() as client: ..."
            )
        return self._client

    async def create_ephemeral_key(self, user_id: str | None = None) -> EphemeralKey:
        """Mint a streaming-only key that expires after 60 seconds.

        Args:
            user_id: Included in the key's comment for auditing; "anon" if None.

        Returns:
            The new EphemeralKey.

        Raises:
            DeepgramAPIError: On a non-2xx response or a body without a key.
        """
        client = self._ensure_client()
        owner = user_id or "anon"
        project = redact(self._project_id)
        logger.info("Creating ephemeral key for user %s in project %s", owner, project)

        resp = await client.post(
            f"/projects/{self._project_id}/keys",
            json={
                "comment": f"dictation-ephemeral-{owner}",
                "scopes": DEEPGRAM_KEY_SCOPES,
                "time_to_live_in_seconds": DEEPGRAM_KEY_TTL_S,
            },
        )
        if resp.status_code not in (200, 201):
            logger.error(
                "Deepgram key request failed: %s %s",
                resp.status_code,
                resp.reason_phrase,
            )
            raise DeepgramAPIError(resp.status_code, resp.text)

        data = resp.json()
        if not isinstance(data, dict) or not data.get("key"):
            raise DeepgramAPIError(resp.status_code, "Response did not include a key")

        logger.info("Ephemeral key created in project %s (ttl %ds)", project, DEEPGRAM_KEY_TTL_S)
        return EphemeralKey.from_dict(data)
