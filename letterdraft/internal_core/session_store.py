from __future__ import annotations

import copy
import logging
import time
import uuid
from threading import RLock
from typing import Any, Dict, Optional

from .contracts import AuditEvent, DraftRecordState

logger = logging.getLogger(__name__)


class InMemoryDraftStore:
    """Server-side draft records, one per creation session."""

    def __init__(self, ttl_seconds: int):
        self._ttl_seconds = ttl_seconds
        self._lock = RLock()
        self._drafts: Dict[str, Dict[str, Any]] = {}

    def create_draft(self, user_id: Optional[str], template_id: str) -> str:
        draft_id = uuid.uuid4().hex
        now = time.time()
        with self._lock:
            self._drafts[draft_id] = {
                "id": draft_id,
                "user_id": user_id,
                "created_at": now,
                "updated_at": now,
                "expires_at": now + self._ttl_seconds,
                "state": "draft",
                "fields": {"template_id": template_id},
                "revision": 0,
                "audit_events": [],
            }
        return draft_id

    def _touch(self, draft_id: str) -> None:
        now = time.time()
        draft = self._drafts[draft_id]
        draft["updated_at"] = now
        draft["expires_at"] = now + self._ttl_seconds

    def _require(self, draft_id: str) -> Dict[str, Any]:
        draft = self._drafts.get(draft_id)
        if draft is None:
            raise KeyError(f"Unknown draft_id: {draft_id}")
        return draft

    def replace_fields(self, draft_id: str, fields: Dict[str, Any]) -> float:
        with self._lock:
            draft = self._require(draft_id)
            if draft["state"] == "finalized":
                raise ValueError(f"Draft {draft_id} is finalized.")
            draft["fields"].update(copy.deepcopy(fields))
            draft["revision"] += 1
            self._touch(draft_id)
            return draft["updated_at"]

    def set_state(self, draft_id: str, state: DraftRecordState) -> None:
        with self._lock:
            self._require(draft_id)["state"] = state
            self._touch(draft_id)

    def append_audit_event(self, draft_id: str, event: AuditEvent) -> None:
        with self._lock:
            self._require(draft_id)["audit_events"].append(event)
            self._touch(draft_id)

    def get_draft(self, draft_id: str) -> Dict[str, Any]:
        with self._lock:
            draft = self._require(draft_id)
            return {
                **copy.deepcopy(draft["fields"]),
                "id": draft["id"],
                "user_id": draft["user_id"],
                "created_at": draft["created_at"],
                "updated_at": draft["updated_at"],
                "state": draft["state"],
                "revision": draft["revision"],
            }

    def get_revision(self, draft_id: str) -> int:
        with self._lock:
            return int(self._require(draft_id)["revision"])

    def get_audit_events(self, draft_id: str) -> list[AuditEvent]:
        with self._lock:
            return list(self._require(draft_id)["audit_events"])

    def destroy_draft(self, draft_id: str, reason: str) -> bool:
        with self._lock:
            removed = self._drafts.pop(draft_id, None) is not None
        if removed:
            logger.debug("draft_destroyed draft_id=%s reason=%s", draft_id, reason)
        return removed

    def cleanup_expired_drafts(self) -> int:
        now = time.time()
        with self._lock:
            expired = [
                draft_id
                for draft_id, draft in self._drafts.items()
                if draft["expires_at"] <= now
            ]
        for draft_id in expired:
            self.destroy_draft(draft_id, reason="ttl_expired")
        return len(expired)
