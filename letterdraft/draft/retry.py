from __future__ import annotations

"""
Perform one draft write with bounded retries.

Design intent:
- Transient failures retry with exponential backoff, then surface as ``last_error``.
- Any other writer error is not retried; it surfaces as ``last_error`` too, so
  ``is_saving`` never stays stuck.
- Cancellation is not a failure: it spends no retry budget and is never reported.
- Success makes the written payload the new unchanged-baseline.
"""

import asyncio
import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Optional

from letterdraft.draft.transport import DraftWriteError, DraftWriter

logger = logging.getLogger(__name__)

SaveOutcomeStatus = Literal["saved", "failed", "cancelled"]

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], _dt.datetime]


def utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


@dataclass
class SaveAttempt:
    payload: str
    attempt_number: int = 0
    cancelled: bool = False


@dataclass(frozen=True)
class SaveOutcome:
    status: SaveOutcomeStatus
    payload: str
    attempts: int
    error: Optional[DraftWriteError] = None


@dataclass
class AutosaveStatus:
    is_saving: bool = False
    last_saved_at: Optional[_dt.datetime] = None
    last_error: Optional[DraftWriteError] = None
    retry_count: int = 0


class DraftSaver:
    def __init__(
        self,
        writer: DraftWriter,
        *,
        max_retries: int = 2,
        backoff_base_sec: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = utc_now,
    ) -> None:
        self._writer = writer
        self._max_retries = max(0, int(max_retries))
        self._backoff_base_sec = max(0.0, float(backoff_base_sec))
        self._sleep = sleep
        self._clock = clock
        self.status = AutosaveStatus()
        self.last_saved_payload: Optional[str] = None

    def backoff_delay(self, retry_number: int) -> float:
        """Delay before retry ``retry_number`` (1-based): base, 2*base, 4*base, ..."""
        return self._backoff_base_sec * (2 ** (retry_number - 1))

    async def save(self, draft_id: str, attempt: SaveAttempt) -> SaveOutcome:
        try:
            return await self._save_with_retries(draft_id, attempt)
        except asyncio.CancelledError:
            attempt.cancelled = True
            logger.debug(
                "autosave_cancelled draft_id=%s attempt=%s", draft_id, attempt.attempt_number
            )
            raise
        except Exception as exc:
            logger.exception(
                "autosave_unexpected_error draft_id=%s attempt=%s", draft_id, attempt.attempt_number
            )
            error = DraftWriteError(f"Unexpected error: {exc}")
            self._record_failure(error)
            return SaveOutcome("failed", attempt.payload, attempt.attempt_number, error)

    def _record_failure(self, error: DraftWriteError) -> None:
        self.status.is_saving = False
        self.status.last_error = error
        self.status.retry_count = 0

    async def _save_with_retries(self, draft_id: str, attempt: SaveAttempt) -> SaveOutcome:
        while True:
            attempt.attempt_number += 1
            try:
                await self._writer.replace_draft(draft_id, attempt.payload)
            except DraftWriteError as exc:
                retries_used = attempt.attempt_number - 1
                if retries_used < self._max_retries:
                    retry_number = retries_used + 1
                    delay = self.backoff_delay(retry_number)
                    self.status.retry_count = retry_number
                    logger.warning(
                        "autosave_retry draft_id=%s retry=%s/%s delay_sec=%.2f error=%s",
                        draft_id,
                        retry_number,
                        self._max_retries,
                        delay,
                        exc.message,
                    )
                    await self._sleep(delay)
                    continue
                self._record_failure(exc)
                logger.warning(
                    "autosave_failed draft_id=%s attempts=%s status_code=%s error=%s",
                    draft_id,
                    attempt.attempt_number,
                    exc.status_code,
                    exc.message,
                )
                return SaveOutcome("failed", attempt.payload, attempt.attempt_number, exc)

            self.last_saved_payload = attempt.payload
            self.status.is_saving = False
            self.status.last_saved_at = self._clock()
            self.status.last_error = None
            self.status.retry_count = 0
            logger.info(
                "autosave_saved draft_id=%s attempts=%s bytes=%s",
                draft_id,
                attempt.attempt_number,
                len(attempt.payload),
            )
            return SaveOutcome("saved", attempt.payload, attempt.attempt_number)
