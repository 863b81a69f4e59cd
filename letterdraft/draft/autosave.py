from __future__ import annotations

"""
Debounced autosave of the canonical draft payload.

Design intent:
- Observe session change events; never write a payload equal to the last
  successfully written one.
- Restart the debounce window on every change so bursts coalesce into one write.
- Cancel an in-flight write before starting a newer one.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from letterdraft.draft.retry import (
    AutosaveStatus,
    Clock,
    DraftSaver,
    SaveAttempt,
    SaveOutcome,
    Sleep,
    utc_now,
)
from letterdraft.draft.transport import DraftWriteError, DraftWriter
from letterdraft.internal_core.config import LetterConfig

logger = logging.getLogger(__name__)


class AutosaveEngine:
    def __init__(
        self,
        writer: DraftWriter,
        draft_id: Optional[str],
        *,
        enabled: bool = True,
        debounce_sec: float = 0.8,
        max_retries: int = 2,
        backoff_base_sec: float = 1.0,
        on_save_success: Optional[Callable[[], Any]] = None,
        on_save_error: Optional[Callable[[DraftWriteError], Any]] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = utc_now,
    ) -> None:
        self._draft_id = draft_id
        self._enabled = enabled
        self._debounce_sec = max(0.0, float(debounce_sec))
        self._on_save_success = on_save_success
        self._on_save_error = on_save_error
        self._saver = DraftSaver(
            writer,
            max_retries=max_retries,
            backoff_base_sec=backoff_base_sec,
            sleep=sleep,
            clock=clock,
        )
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._attempt: Optional[SaveAttempt] = None
        self._latest_payload: Optional[str] = None
        self._payload_source: Optional[Callable[[], str]] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @classmethod
    def from_config(
        cls, writer: DraftWriter, draft_id: Optional[str], config: LetterConfig, **kwargs: Any
    ) -> "AutosaveEngine":
        return cls(
            writer,
            draft_id,
            enabled=config.LETTER_AUTOSAVE_ENABLED,
            debounce_sec=config.debounce_sec,
            max_retries=config.LETTER_AUTOSAVE_MAX_RETRIES,
            backoff_base_sec=config.backoff_base_sec,
            **kwargs,
        )

    @property
    def status(self) -> AutosaveStatus:
        return self._saver.status

    @property
    def last_saved_payload(self) -> Optional[str]:
        return self._saver.last_saved_payload

    @property
    def is_active(self) -> bool:
        return self._enabled and bool(self._draft_id)

    @property
    def has_scheduled_save(self) -> bool:
        return self._timer is not None

    @property
    def has_write_in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def observe(self, session) -> None:
        """Subscribe to a session's change events (see ``CreationSession.subscribe``)."""
        self.stop_observing()
        self._payload_source = session.canonical_payload
        self._unsubscribe = session.subscribe(self._on_session_change)

    def stop_observing(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None

    def _on_session_change(self, session) -> None:
        self.notify(session.canonical_payload())

    def current_payload(self) -> Optional[str]:
        if self._payload_source is not None:
            return self._payload_source()
        return self._latest_payload

    def mark_saved(self, payload: str) -> None:
        """Seed the baseline, e.g. with the payload of a freshly loaded draft."""
        self._saver.last_saved_payload = payload
        self._latest_payload = payload

    def notify(self, payload: str) -> None:
        if not self.is_active:
            return
        self._latest_payload = payload
        self._cancel_timer()
        if payload == self._saver.last_saved_payload:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_sec, self._on_debounce_elapsed)

    def _on_debounce_elapsed(self) -> None:
        self._timer = None
        payload = self._latest_payload
        if payload is None or payload == self._saver.last_saved_payload:
            return
        self._start_write(payload)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_inflight(self) -> None:
        if self._task is not None and not self._task.done():
            logger.debug("autosave_superseded draft_id=%s", self._draft_id)
            self._task.cancel()

    def _start_write(self, payload: str) -> asyncio.Task:
        self._cancel_inflight()
        self._saver.status.is_saving = True
        attempt = SaveAttempt(payload=payload)
        self._attempt = attempt
        self._task = asyncio.get_running_loop().create_task(self._write(attempt))
        return self._task

    async def _write(self, attempt: SaveAttempt) -> SaveOutcome:
        outcome = await self._saver.save(self._draft_id or "", attempt)
        if outcome.status == "saved":
            self._run_callback(self._on_save_success)
            latest = self._latest_payload
            if latest is not None and latest != outcome.payload:
                # State moved on while this write was in flight.
                self.notify(latest)
        else:
            self._run_callback(self._on_save_error, outcome.error)
        return outcome

    @staticmethod
    def _run_callback(callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            # A faulty listener must not break the save pipeline.
            logger.exception("autosave_callback_failed")

    async def force_save(self) -> Optional[SaveOutcome]:
        """Write the live payload now, bypassing the debounce window.

        Returns ``None`` when there is nothing to write, and a ``cancelled``
        outcome when a newer write superseded this one.
        """
        if not self.is_active:
            return None
        self._cancel_timer()
        payload = self.current_payload()
        if payload is None:
            return None
        self._latest_payload = payload
        if payload == self._saver.last_saved_payload:
            return None
        task = self._start_write(payload)
        attempt = self._attempt
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                return SaveOutcome(
                    "cancelled", payload, attempt.attempt_number if attempt else 0
                )
            raise

    async def close(self) -> None:
        """Drop timers and in-flight writes, e.g. when the editor goes away."""
        self.stop_observing()
        self._cancel_timer()
        task = self._task
        self._cancel_inflight()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        self._saver.status.is_saving = False
