from __future__ import annotations

"""
Per-page saved/in-progress letter content with an edit/saved workflow.

Design intent:
- Pages are positional; removing one re-indexes the rest.
- In-progress edits survive page switches without being committed.
- ``save`` reads the live edit surface, never a cached copy, and hands the
  whole page list to the commit listener so no page can be dropped.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol, Sequence

from letterdraft.letter.codec import find_delimiter_collisions
from letterdraft.letter.salutation import DEFAULT_TEMPLATE, SalutationTemplate, to_display, to_raw

logger = logging.getLogger(__name__)

PageMode = Literal["editing", "saved"]

QuotaCheck = Callable[[int], bool]
CommitListener = Callable[[list[str]], None]


@dataclass
class Page:
    index: int
    saved_content: str = ""
    in_progress_content: str = ""
    mode: PageMode = "editing"

    @property
    def current_content(self) -> str:
        return self.in_progress_content if self.mode == "editing" else self.saved_content


@dataclass(frozen=True)
class PageActionResult:
    ok: bool
    reason: str = ""


class EditSurface(Protocol):
    def read_display(self) -> str: ...

    def show(self, display: str) -> None: ...


class BufferSurface:
    """Headless edit surface holding the display string in memory."""

    def __init__(self, text: str = "") -> None:
        self.text = text

    def read_display(self) -> str:
        return self.text

    def show(self, display: str) -> None:
        self.text = display


@dataclass
class PageQuota:
    """First ``free_pages`` pages are free; each further page needs ``extra_page_cost``."""

    free_pages: int = 2
    extra_page_cost: int = 5
    balance: int = 0

    def __call__(self, page_count: int) -> bool:
        if page_count < self.free_pages:
            return True
        return self.balance >= self.extra_page_cost


def _allow_all(page_count: int) -> bool:
    return True


class PageDocumentStore:
    def __init__(
        self,
        pages: Optional[Sequence[Page]] = None,
        *,
        recipient_name: str = "",
        sender_name: str = "",
        quota: Optional[QuotaCheck] = None,
        template: SalutationTemplate = DEFAULT_TEMPLATE,
        on_commit: Optional[CommitListener] = None,
    ) -> None:
        self._pages: list[Page] = [
            Page(
                index=i,
                saved_content=p.saved_content,
                in_progress_content=p.in_progress_content,
                mode=p.mode,
            )
            for i, p in enumerate(pages or [])
        ]
        if not self._pages:
            self._pages = [Page(index=0)]
        self._active_index = 0
        self._recipient_name = recipient_name or ""
        self._sender_name = sender_name or ""
        self._quota: QuotaCheck = quota or _allow_all
        self._template = template
        self._on_commit = on_commit
        self._surface: Optional[EditSurface] = None

    @classmethod
    def from_saved(cls, contents: Sequence[str], **kwargs) -> "PageDocumentStore":
        pages = [
            Page(index=i, saved_content=text, in_progress_content=text, mode="saved")
            for i, text in enumerate(contents or [""])
        ]
        return cls(pages, **kwargs)

    @property
    def pages(self) -> list[Page]:
        return [
            Page(
                index=p.index,
                saved_content=p.saved_content,
                in_progress_content=p.in_progress_content,
                mode=p.mode,
            )
            for p in self._pages
        ]

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def active_index(self) -> int:
        return self._active_index

    @property
    def active_page(self) -> Page:
        return self._pages[self._active_index]

    @property
    def recipient_name(self) -> str:
        return self._recipient_name

    @property
    def sender_name(self) -> str:
        return self._sender_name

    def set_commit_listener(self, listener: Optional[CommitListener]) -> None:
        self._on_commit = listener

    def saved_contents(self) -> list[str]:
        return [p.saved_content for p in self._pages]

    def has_uncommitted_edits(self) -> bool:
        return any(
            p.mode == "editing" and p.in_progress_content != p.saved_content
            for p in self._pages
        )

    def display_content(self, index: int) -> str:
        page = self._pages[index]
        return to_display(
            page.current_content,
            index,
            len(self._pages),
            self._recipient_name,
            self._sender_name,
            template=self._template,
        )

    def _raw_from_display(self, display: str, index: int) -> str:
        return to_raw(
            display,
            index,
            len(self._pages),
            self._recipient_name,
            self._sender_name,
            template=self._template,
        )

    def attach_surface(self, surface: Optional[EditSurface]) -> None:
        self._surface = surface
        self._refresh_surface()

    def _refresh_surface(self) -> None:
        if self._surface is not None:
            self._surface.show(self.display_content(self._active_index))

    def _capture_active(self) -> None:
        page = self._pages[self._active_index]
        if page.mode != "editing" or self._surface is None:
            return
        page.in_progress_content = self._raw_from_display(
            self._surface.read_display(), self._active_index
        )

    def _notify_commit(self) -> None:
        if self._on_commit is not None:
            self._on_commit(self.saved_contents())

    def set_names(self, recipient_name: str, sender_name: str) -> None:
        self._capture_active()
        self._recipient_name = recipient_name or ""
        self._sender_name = sender_name or ""
        self._refresh_surface()

    def on_surface_edit(self, display: str) -> None:
        page = self._pages[self._active_index]
        if page.mode != "editing":
            logger.debug("surface_edit_ignored page=%s mode=%s", page.index, page.mode)
            return
        page.in_progress_content = self._raw_from_display(display, self._active_index)

    def switch_page(self, new_index: int) -> PageActionResult:
        if not 0 <= new_index < len(self._pages):
            return PageActionResult(False, "index_out_of_range")
        self._capture_active()
        self._active_index = new_index
        self._refresh_surface()
        return PageActionResult(True)

    def edit(self) -> PageActionResult:
        page = self._pages[self._active_index]
        if page.mode == "editing":
            return PageActionResult(True, "already_editing")
        page.mode = "editing"
        page.in_progress_content = page.saved_content
        self._refresh_surface()
        return PageActionResult(True)

    def save(self) -> PageActionResult:
        page = self._pages[self._active_index]
        if self._surface is not None:
            raw = self._raw_from_display(self._surface.read_display(), self._active_index)
        else:
            raw = self._raw_from_display(
                self.display_content(self._active_index), self._active_index
            )
        if find_delimiter_collisions([raw]):
            logger.warning(
                "page_delimiter_collision page=%s; content will split on reload", page.index
            )
        page.saved_content = raw
        page.in_progress_content = raw
        page.mode = "saved"
        self._refresh_surface()
        self._notify_commit()
        return PageActionResult(True)

    def add_page(self) -> PageActionResult:
        if not self._quota(len(self._pages)):
            logger.info("add_page_refused page_count=%s", len(self._pages))
            return PageActionResult(False, "quota_refused")
        self._capture_active()
        self._pages.append(Page(index=len(self._pages)))
        self._active_index = len(self._pages) - 1
        self._refresh_surface()
        self._notify_commit()
        return PageActionResult(True)

    def remove_page(self, index: int) -> None:
        if len(self._pages) <= 1 or not 0 <= index < len(self._pages):
            return
        self._capture_active()
        del self._pages[index]
        for i, page in enumerate(self._pages):
            page.index = i
        if index == self._active_index:
            self._active_index = max(0, index - 1)
        elif index < self._active_index:
            self._active_index -= 1
        self._refresh_surface()
        self._notify_commit()
