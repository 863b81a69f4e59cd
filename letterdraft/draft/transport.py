from __future__ import annotations

"""
Client side of the remote draft store.

Design intent:
- One opaque draft id per creation session.
- Every write replaces the draft fields with the full canonical payload.
- Cancelling the awaiting task aborts the HTTP request itself.
"""

import json
import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from letterdraft.internal_core.config import LetterConfig

logger = logging.getLogger(__name__)


class DraftWriteError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DraftWriter(Protocol):
    async def replace_draft(self, draft_id: str, payload: str) -> None: ...


def _error_message(response: httpx.Response) -> str:
    fallback = f"HTTP {response.status_code}: {response.reason_phrase}"
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return fallback
    if isinstance(body, dict):
        message = body.get("error") or body.get("detail")
        if isinstance(message, str) and message.strip():
            return message
    return fallback


class HttpDraftClient:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: LetterConfig) -> "HttpDraftClient":
        return cls(
            httpx.AsyncClient(
                base_url=config.LETTER_DRAFT_API_BASE_URL,
                timeout=config.LETTER_HTTP_TIMEOUT_SECONDS,
            )
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise DraftWriteError(f"Network error: {exc}") from exc
        if response.is_error:
            raise DraftWriteError(_error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _draft_path(draft_id: str) -> str:
        if not draft_id:
            raise DraftWriteError("Draft ID is required")
        return f"/card-drafts/{quote(draft_id, safe='')}"

    async def create_draft(self, template_id: str) -> str:
        response = await self._request("POST", "/card-drafts", json={"template_id": template_id})
        draft_id = str(response.json()["data"]["id"])
        logger.info("draft_created draft_id=%s", draft_id)
        return draft_id

    async def fetch_draft(self, draft_id: str) -> dict[str, Any]:
        response = await self._request("GET", self._draft_path(draft_id))
        return response.json()

    async def replace_draft(self, draft_id: str, payload: str) -> None:
        await self._request(
            "PATCH",
            self._draft_path(draft_id),
            content=payload.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    async def finalize_draft(self, draft_id: str) -> None:
        await self._request("POST", f"{self._draft_path(draft_id)}/finalize")

    async def delete_draft(self, draft_id: str) -> None:
        await self._request("DELETE", self._draft_path(draft_id))
