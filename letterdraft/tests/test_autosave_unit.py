import asyncio

from letterdraft.draft.autosave import AutosaveEngine
from letterdraft.draft.transport import DraftWriteError
from letterdraft.draft.unload_guard import UnloadGuard
from letterdraft.session.controller import CreationSession


class RecordingWriter:
    def __init__(self, delay: float = 0.0, fail: bool = False) -> None:
        self.delay = delay
        self.fail = fail
        self.calls: list[str] = []
        self.completed: list[str] = []

    async def replace_draft(self, draft_id: str, payload: str) -> None:
        self.calls.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise DraftWriteError("HTTP 500: Internal Server Error", status_code=500)
        self.completed.append(payload)


def _engine(writer: RecordingWriter, **kwargs) -> AutosaveEngine:
    kwargs.setdefault("debounce_sec", 0.01)
    kwargs.setdefault("max_retries", 0)
    return AutosaveEngine(writer, "draft-1", **kwargs)


def test_burst_of_edits_coalesces_into_one_write() -> None:
    writer = RecordingWriter()
    engine = _engine(writer, debounce_sec=0.4)

    async def scenario() -> None:
        engine.notify("p1")
        await asyncio.sleep(0.1)
        engine.notify("p2")
        await asyncio.sleep(0.15)
        engine.notify("p3")
        await asyncio.sleep(0.2)
        assert writer.calls == []
        assert engine.has_scheduled_save
        await asyncio.sleep(0.4)

    asyncio.run(scenario())

    assert writer.calls == ["p3"]
    assert engine.last_saved_payload == "p3"
    assert engine.status.is_saving is False
    assert engine.status.last_saved_at is not None


def test_unchanged_payload_is_never_written() -> None:
    writer = RecordingWriter()
    engine = _engine(writer)
    engine.mark_saved("loaded")

    async def scenario() -> None:
        engine.notify("loaded")
        assert not engine.has_scheduled_save
        assert await engine.force_save() is None
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert writer.calls == []


def test_newer_write_supersedes_in_flight_write() -> None:
    writer = RecordingWriter(delay=0.2)
    engine = _engine(writer)

    async def scenario() -> None:
        engine.notify("p1")
        await asyncio.sleep(0.05)
        assert engine.has_write_in_flight
        engine.notify("p2")
        await asyncio.sleep(0.4)

    asyncio.run(scenario())

    assert writer.calls == ["p1", "p2"]
    assert writer.completed == ["p2"]
    assert engine.last_saved_payload == "p2"
    assert engine.status.last_error is None


def test_revert_during_in_flight_write_is_saved_afterwards() -> None:
    writer = RecordingWriter(delay=0.1)
    engine = _engine(writer)
    engine.mark_saved("p0")

    async def scenario() -> None:
        engine.notify("p1")
        await asyncio.sleep(0.05)
        engine.notify("p0")
        await asyncio.sleep(0.4)

    asyncio.run(scenario())

    assert writer.completed == ["p1", "p0"]
    assert engine.last_saved_payload == "p0"


def test_inactive_engine_does_nothing() -> None:
    writer = RecordingWriter()
    disabled = _engine(writer, enabled=False)
    no_draft = AutosaveEngine(writer, None, debounce_sec=0.01)

    async def scenario() -> None:
        disabled.notify("p1")
        no_draft.notify("p1")
        assert await disabled.force_save() is None
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert not disabled.is_active
    assert not no_draft.is_active
    assert writer.calls == []


def test_callbacks_report_success_and_failure() -> None:
    events: list[object] = []
    ok_engine = _engine(RecordingWriter(), on_save_success=lambda: events.append("ok"))
    failing = _engine(RecordingWriter(fail=True), on_save_error=events.append)

    async def scenario() -> None:
        ok_engine.notify("p1")
        failing.notify("p1")
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert "ok" in events
    errors = [e for e in events if isinstance(e, DraftWriteError)]
    assert len(errors) == 1
    assert failing.status.last_error is errors[0]
    assert failing.last_saved_payload is None


def test_failing_callback_does_not_break_autosave() -> None:
    def explode() -> None:
        raise RuntimeError("listener bug")

    writer = RecordingWriter()
    engine = _engine(writer, on_save_success=explode)

    async def scenario() -> None:
        engine.notify("p1")
        await asyncio.sleep(0.05)
        engine.notify("p2")
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert writer.completed == ["p1", "p2"]


def test_force_save_writes_live_session_payload() -> None:
    writer = RecordingWriter()
    session = CreationSession("draft-1")
    engine = _engine(writer, debounce_sec=5.0)
    engine.observe(session)

    async def scenario():
        session.set_recipient_name("Mai")
        assert engine.has_scheduled_save
        outcome = await engine.force_save()
        assert not engine.has_scheduled_save
        return outcome

    outcome = asyncio.run(scenario())

    assert outcome is not None and outcome.status == "saved"
    assert writer.calls == [session.canonical_payload()]


def test_close_drops_pending_save() -> None:
    writer = RecordingWriter()
    session = CreationSession("draft-1")
    engine = _engine(writer, debounce_sec=0.05)
    engine.observe(session)

    async def scenario() -> None:
        session.set_sender_name("An")
        await engine.close()
        await asyncio.sleep(0.1)
        session.set_sender_name("Binh")
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert writer.calls == []
    assert not engine.has_scheduled_save


def test_unexpected_writer_error_does_not_leave_engine_saving() -> None:
    class BrokenWriter:
        async def replace_draft(self, draft_id: str, payload: str) -> None:
            raise ValueError("boom")

    errors: list[DraftWriteError] = []
    engine = AutosaveEngine(BrokenWriter(), "draft-1", debounce_sec=0.01, on_save_error=errors.append)
    engine.mark_saved("p0")
    guard = UnloadGuard(engine)

    async def scenario() -> None:
        engine.notify("p1")
        await asyncio.sleep(0.05)
        engine.notify("p0")

    asyncio.run(scenario())

    assert engine.status.is_saving is False
    assert not engine.has_write_in_flight
    assert len(errors) == 1
    assert engine.status.last_error is errors[0]
    assert "boom" in errors[0].message
    assert guard.evaluate().reason == "clean"
