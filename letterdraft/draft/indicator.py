from __future__ import annotations

"""
Human-readable saving indicator derived from autosave status.
"""

import datetime as _dt
from dataclasses import dataclass
from typing import Literal, Optional

from letterdraft.draft.retry import AutosaveStatus

IndicatorTone = Literal["hidden", "saving", "error", "saved"]

SAVED_VISIBLE_SECONDS = 5


@dataclass(frozen=True)
class SaveIndicator:
    visible: bool
    tone: IndicatorTone
    label: str


def format_last_saved(saved_at: Optional[_dt.datetime], now: _dt.datetime) -> str:
    if saved_at is None:
        return ""
    seconds = int((now - saved_at).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    if seconds < 10:
        return "just now"
    if seconds < 60:
        return f"{seconds} seconds ago"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if hours < 24:
        return f"{hours} hours ago"
    return saved_at.date().isoformat()


def describe_status(status: AutosaveStatus, now: _dt.datetime) -> SaveIndicator:
    if status.is_saving:
        label = "Saving…"
        if status.retry_count:
            label = f"Saving… (retry {status.retry_count})"
        return SaveIndicator(True, "saving", label)
    if status.last_error is not None:
        return SaveIndicator(True, "error", f"Save failed: {status.last_error.message}")
    if status.last_saved_at is not None:
        label = f"Saved {format_last_saved(status.last_saved_at, now)}"
        visible = (now - status.last_saved_at).total_seconds() < SAVED_VISIBLE_SECONDS
        return SaveIndicator(visible, "saved", label)
    return SaveIndicator(False, "hidden", "")
