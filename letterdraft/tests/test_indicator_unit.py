import datetime as dt

from letterdraft.draft.indicator import describe_status, format_last_saved
from letterdraft.draft.retry import AutosaveStatus
from letterdraft.draft.transport import DraftWriteError

NOW = dt.datetime(2026, 3, 1, 9, 30, tzinfo=dt.timezone.utc)


def test_format_last_saved_buckets() -> None:
    assert format_last_saved(None, NOW) == ""
    assert format_last_saved(NOW - dt.timedelta(seconds=3), NOW) == "just now"
    assert format_last_saved(NOW - dt.timedelta(seconds=42), NOW) == "42 seconds ago"
    assert format_last_saved(NOW - dt.timedelta(minutes=5), NOW) == "5 minutes ago"
    assert format_last_saved(NOW - dt.timedelta(hours=3), NOW) == "3 hours ago"
    assert format_last_saved(NOW - dt.timedelta(days=2), NOW) == "2026-02-27"


def test_saving_shows_retry_count() -> None:
    assert describe_status(AutosaveStatus(is_saving=True), NOW).label == "Saving…"
    indicator = describe_status(AutosaveStatus(is_saving=True, retry_count=2), NOW)
    assert indicator.visible
    assert indicator.label == "Saving… (retry 2)"


def test_error_takes_precedence_over_last_saved() -> None:
    status = AutosaveStatus(last_saved_at=NOW, last_error=DraftWriteError("Draft not found", 404))
    indicator = describe_status(status, NOW)
    assert indicator.tone == "error"
    assert indicator.label == "Save failed: Draft not found"


def test_saved_label_hides_after_a_few_seconds() -> None:
    fresh = describe_status(AutosaveStatus(last_saved_at=NOW - dt.timedelta(seconds=2)), NOW)
    stale = describe_status(AutosaveStatus(last_saved_at=NOW - dt.timedelta(seconds=30)), NOW)
    assert fresh.visible and fresh.label == "Saved just now"
    assert not stale.visible
    assert stale.tone == "saved"


def test_idle_status_is_hidden() -> None:
    indicator = describe_status(AutosaveStatus(), NOW)
    assert not indicator.visible
    assert indicator.tone == "hidden"
