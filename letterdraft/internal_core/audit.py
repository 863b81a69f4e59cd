from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Mapping, Optional

from .contracts import AuditEvent, AuditEventType
from .session_store import InMemoryDraftStore

logger = logging.getLogger(__name__)

_MAX_NOTE_CHARS = 120


def _ts_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def _clean_note(note: str) -> str:
    note = " ".join((note or "").split())
    if len(note) > _MAX_NOTE_CHARS:
        note = note[:_MAX_NOTE_CHARS] + "…"
    return note


def log_event(
    store: InMemoryDraftStore,
    draft_id: str,
    event_type: AuditEventType,
    code: str,
    *,
    fields: Optional[Mapping[str, Any]] = None,
    note: str = "",
    duration_ms: Optional[int] = None,
) -> AuditEvent:
    """Record a draft audit event stamped with the draft's current revision.

    Only the names of written fields are kept. Field values carry letter text
    and never enter the audit trail.
    """
    event = AuditEvent(
        ts_iso=_ts_iso(),
        draft_id=draft_id,
        type=event_type,
        code=code,
        revision=store.get_revision(draft_id),
        field_names=sorted(fields or {}),
        note=_clean_note(note),
        duration_ms=duration_ms,
    )
    store.append_audit_event(draft_id, event)
    logger.info(
        "draft_audit draft_id=%s type=%s code=%s revision=%s fields=%s",
        draft_id,
        event_type,
        code,
        event.revision,
        len(event.field_names),
    )
    return event
