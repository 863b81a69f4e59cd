from __future__ import annotations

"""
Warn before navigating away with unsaved draft changes.

Design intent:
- Re-derive "unsaved" from live session state at unload time, not from a
  snapshot taken earlier.
- Advisory only: a pending write is attempted but cannot be guaranteed.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional, Protocol

from letterdraft.draft.autosave import AutosaveEngine

logger = logging.getLogger(__name__)

UnloadReason = Literal["clean", "inactive", "unsaved_changes", "save_in_flight"]

DEFAULT_CONFIRM_MESSAGE = "You have unsaved changes. Are you sure you want to leave this page?"


@dataclass(frozen=True)
class UnloadDecision:
    block: bool
    reason: UnloadReason


class BeforeUnloadEvent:
    """The notification handed to listeners when the page is about to unload."""

    def __init__(self) -> None:
        self.default_prevented = False
        self.return_value = ""

    def prevent_default(self) -> None:
        self.default_prevented = True


class NavigationLifecycle(Protocol):
    def add_listener(self, event: str, listener: Callable[[BeforeUnloadEvent], Any]) -> None: ...

    def remove_listener(self, event: str, listener: Callable[[BeforeUnloadEvent], Any]) -> None: ...


class UnloadGuard:
    EVENT_NAME = "beforeunload"

    def __init__(self, engine: AutosaveEngine, *, message: str = DEFAULT_CONFIRM_MESSAGE) -> None:
        self._engine = engine
        self._message = message
        self._lifecycle: Optional[NavigationLifecycle] = None
        self._flush_task: Optional[asyncio.Task] = None

    def install(self, lifecycle: NavigationLifecycle) -> None:
        self.uninstall()
        lifecycle.add_listener(self.EVENT_NAME, self.handle_before_unload)
        self._lifecycle = lifecycle

    def uninstall(self) -> None:
        if self._lifecycle is not None:
            self._lifecycle.remove_listener(self.EVENT_NAME, self.handle_before_unload)
        self._lifecycle = None

    def evaluate(self) -> UnloadDecision:
        engine = self._engine
        if not engine.is_active:
            return UnloadDecision(False, "inactive")
        current = engine.current_payload()
        if current is not None and current != engine.last_saved_payload:
            return UnloadDecision(True, "unsaved_changes")
        if engine.has_write_in_flight or engine.status.is_saving:
            return UnloadDecision(True, "save_in_flight")
        return UnloadDecision(False, "clean")

    def handle_before_unload(self, event: BeforeUnloadEvent) -> UnloadDecision:
        decision = self.evaluate()
        if not decision.block:
            return decision
        event.prevent_default()
        event.return_value = self._message
        logger.info("unload_blocked reason=%s", decision.reason)
        if decision.reason == "unsaved_changes":
            self._flush()
        return decision

    def _flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("unload_flush_skipped reason=no_running_loop")
            return
        self._flush_task = loop.create_task(self._engine.force_save())
