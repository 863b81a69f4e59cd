from __future__ import annotations

"""
Remote draft store API for letterdraft.

Design intent:
- One opaque draft record per creation session.
- PATCH replaces draft fields with the client's full payload; no schema
  validation of the fields themselves.
- Keep handlers thin; record state lives in the in-memory draft store.
"""

import datetime as _dt
import json
import logging
import re
import time
from typing import Any, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from letterdraft.internal_core.audit import log_event
from letterdraft.internal_core.config import load_config
from letterdraft.internal_core.session_store import InMemoryDraftStore


class DraftCreateRequest(BaseModel):
    template_id: str = Field(min_length=1, max_length=64)


class DraftRef(BaseModel):
    id: str


class DraftCreateResponse(BaseModel):
    data: DraftRef


class DraftUpdateResponse(BaseModel):
    ok: bool = True
    updated_at: str
    revision: int = Field(ge=0)


class DraftStateResponse(BaseModel):
    id: str
    state: str


class DraftDeleteResponse(BaseModel):
    id: str
    deleted: bool = True


app = FastAPI(title="letterdraft draft store")
logger = logging.getLogger(__name__)
logging.getLogger("letterdraft").setLevel(load_config().LETTER_LOG_LEVEL.upper())
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    flags=re.IGNORECASE,
)
_RESERVED_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at", "state", "revision"})

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_draft_store() -> InMemoryDraftStore:
    existing = getattr(app.state, "draft_store", None)
    if isinstance(existing, InMemoryDraftStore):
        return existing
    created = InMemoryDraftStore(ttl_seconds=load_config().LETTER_DRAFT_TTL_SECONDS)
    setattr(app.state, "draft_store", created)
    return created


def _iso_from_epoch(ts: float) -> str:
    return _dt.datetime.fromtimestamp(ts, tz=_dt.timezone.utc).isoformat()


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/card-drafts", response_model=DraftCreateResponse)
async def create_draft(
    payload: DraftCreateRequest,
    x_user_id: Optional[str] = Header(default=None),
) -> DraftCreateResponse:
    if not _UUID_RE.match(payload.template_id):
        raise HTTPException(status_code=400, detail="template_id must be a UUID")
    store = _get_draft_store()
    store.cleanup_expired_drafts()
    draft_id = store.create_draft(user_id=x_user_id, template_id=payload.template_id)
    log_event(store, draft_id, "DRAFT_CREATED", "OK", fields={"template_id": payload.template_id})
    return DraftCreateResponse(data=DraftRef(id=draft_id))


@app.get("/card-drafts/{draft_id}")
async def get_draft(draft_id: str) -> dict[str, Any]:
    try:
        record = _get_draft_store().get_draft(draft_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Draft not found") from exc
    record["created_at"] = _iso_from_epoch(record["created_at"])
    record["updated_at"] = _iso_from_epoch(record["updated_at"])
    return record


@app.patch("/card-drafts/{draft_id}", response_model=DraftUpdateResponse)
async def replace_draft_fields(draft_id: str, request: Request) -> DraftUpdateResponse:
    started = time.monotonic()
    try:
        body = json.loads(await request.body() or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Draft fields must be a JSON object")

    fields = {k: v for k, v in body.items() if k not in _RESERVED_FIELDS}
    store = _get_draft_store()
    try:
        updated_at = store.replace_fields(draft_id, fields)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Draft not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    event = log_event(
        store,
        draft_id,
        "DRAFT_UPDATED",
        "OK",
        fields=fields,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    return DraftUpdateResponse(updated_at=_iso_from_epoch(updated_at), revision=event.revision)


@app.post("/card-drafts/{draft_id}/finalize", response_model=DraftStateResponse)
async def finalize_draft(draft_id: str) -> DraftStateResponse:
    store = _get_draft_store()
    try:
        store.set_state(draft_id, "finalized")
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Draft not found") from exc
    log_event(store, draft_id, "DRAFT_FINALIZED", "OK", note="finalized by client")
    return DraftStateResponse(id=draft_id, state="finalized")


@app.delete("/card-drafts/{draft_id}", response_model=DraftDeleteResponse)
async def delete_draft(draft_id: str) -> DraftDeleteResponse:
    if not _get_draft_store().destroy_draft(draft_id, reason="abandoned"):
        raise HTTPException(status_code=404, detail="Draft not found")
    logger.info("draft_destroyed draft_id=%s reason=abandoned", draft_id)
    return DraftDeleteResponse(id=draft_id)
