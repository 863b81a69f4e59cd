from __future__ import annotations

"""
Creation-session controller: sole owner of the in-progress card state.

Design intent:
- Mutate session state only through named operations.
- Emit one change event per mutation; autosave observes these events.
- Keep letter pages in the page store; committed pages flow back into state.
"""

import logging
import uuid
from typing import Any, Callable, Mapping, Optional

from letterdraft.draft.payload import canonical_payload, session_state_from_record
from letterdraft.internal_core.config import LetterConfig
from letterdraft.internal_core.contracts import (
    EnvelopeStyle,
    PhotoSlot,
    SessionLifecycle,
    SessionState,
    StickerPlacement,
)
from letterdraft.letter.pages import PageDocumentStore, PageQuota, QuotaCheck
from letterdraft.letter.salutation import DEFAULT_TEMPLATE, SalutationTemplate

logger = logging.getLogger(__name__)

ChangeListener = Callable[["CreationSession"], None]

STYLING_FIELDS = frozenset(
    {
        "letter_background",
        "letter_pattern",
        "letter_container_background",
        "cover_background",
        "cover_pattern",
        "photo_background",
        "photo_pattern",
        "signature_background",
        "signature_pattern",
    }
)


class SessionClosedError(RuntimeError):
    """Raised when mutating a finalized or abandoned session."""


class CreationSession:
    def __init__(
        self,
        draft_id: str,
        *,
        state: Optional[SessionState] = None,
        pages: Optional[PageDocumentStore] = None,
        quota: Optional[QuotaCheck] = None,
        max_photos: int = 4,
        template: SalutationTemplate = DEFAULT_TEMPLATE,
        loaded: bool = False,
    ) -> None:
        self.draft_id = draft_id
        self.lifecycle: SessionLifecycle = "active"
        self._state = state.model_copy(deep=True) if state is not None else SessionState()
        self._max_photos = max(0, int(max_photos))
        self._listeners: list[ChangeListener] = []
        if pages is None:
            names = {
                "recipient_name": self._state.recipient_name or "",
                "sender_name": self._state.sender_name or "",
                "quota": quota,
                "template": template,
            }
            if loaded or self._state.letter_pages:
                pages = PageDocumentStore.from_saved(self._state.letter_pages or [""], **names)
            else:
                pages = PageDocumentStore(**names)
        self._pages = pages
        self._pages.set_commit_listener(self._on_pages_committed)

    @classmethod
    def start(
        cls,
        draft_id: str,
        *,
        template_id: Optional[str] = None,
        config: Optional[LetterConfig] = None,
        balance: int = 0,
        **kwargs: Any,
    ) -> "CreationSession":
        if config is not None:
            kwargs.setdefault(
                "quota",
                PageQuota(
                    free_pages=config.LETTER_FREE_PAGES,
                    extra_page_cost=config.LETTER_EXTRA_PAGE_COST,
                    balance=balance,
                ),
            )
            kwargs.setdefault("max_photos", config.LETTER_MAX_PHOTOS)
        return cls(draft_id, state=SessionState(template_id=template_id), **kwargs)

    @classmethod
    def resume(cls, draft_id: str, record: Mapping[str, Any], **kwargs: Any) -> "CreationSession":
        """Rebuild a session from a stored draft; its pages start out saved."""
        return cls(draft_id, state=session_state_from_record(record), loaded=True, **kwargs)

    @property
    def pages(self) -> PageDocumentStore:
        return self._pages

    @property
    def state(self) -> SessionState:
        return self._state.model_copy(deep=True)

    @property
    def is_active(self) -> bool:
        return self.lifecycle == "active"

    def canonical_payload(self) -> str:
        return canonical_payload(self._state)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _require_active(self) -> None:
        if not self.is_active:
            raise SessionClosedError(f"Session {self.draft_id} is {self.lifecycle}.")

    def _mutate(self, **fields: Any) -> None:
        self._require_active()
        for name, value in fields.items():
            setattr(self._state, name, value)
        self._emit()

    def _on_pages_committed(self, pages: list[str]) -> None:
        if not self.is_active:
            logger.warning("page_commit_ignored draft_id=%s lifecycle=%s", self.draft_id, self.lifecycle)
            return
        self._mutate(letter_pages=list(pages))

    # Letter text

    def set_recipient_name(self, name: str) -> None:
        self._mutate(recipient_name=name)
        self._pages.set_names(name, self._state.sender_name or "")

    def set_sender_name(self, name: str) -> None:
        self._mutate(sender_name=name)
        self._pages.set_names(self._state.recipient_name or "", name)

    def set_rich_content(self, rich_content: Optional[str], used_fonts: Optional[list[str]] = None) -> None:
        fields: dict[str, Any] = {"rich_content": rich_content}
        if used_fonts is not None:
            fields["used_fonts"] = list(used_fonts)
        self._mutate(**fields)

    def set_used_fonts(self, used_fonts: Optional[list[str]]) -> None:
        self._mutate(used_fonts=list(used_fonts) if used_fonts is not None else None)

    def set_font_style(self, font_style: Optional[str]) -> None:
        self._mutate(font_style=font_style)

    def set_text_effect(self, text_effect: Optional[str]) -> None:
        self._mutate(text_effect=text_effect)

    # Catalog selections

    def select_template(self, template_id: Optional[str]) -> None:
        self._mutate(template_id=template_id)

    def select_envelope(self, envelope_id: Optional[str], style: Optional[EnvelopeStyle] = None) -> None:
        fields: dict[str, Any] = {"envelope_id": envelope_id}
        if style is not None:
            fields["envelope"] = style.model_copy()
        self._mutate(**fields)

    def select_stamp(self, stamp_id: Optional[str]) -> None:
        self._mutate(stamp_id=stamp_id)

    def select_music(self, music_id: Optional[str]) -> None:
        self._mutate(music_id=music_id)

    def select_frame(self, frame_id: Optional[str]) -> None:
        self._mutate(frame_id=frame_id)

    # Styling

    def update_styling(self, **fields: Optional[str]) -> None:
        unknown = sorted(set(fields) - STYLING_FIELDS)
        if unknown:
            raise ValueError(f"Unknown styling fields: {unknown}")
        self._mutate(**fields)

    def set_envelope_style(self, **fields: Any) -> None:
        current = self._state.envelope or EnvelopeStyle()
        self._mutate(envelope=current.model_copy(update=fields))

    # Auxiliary collections

    def add_photo(self, photo_url: str) -> bool:
        self._require_active()
        photos = list(self._state.photos or [])
        if len(photos) >= self._max_photos:
            logger.info("add_photo_refused draft_id=%s count=%s", self.draft_id, len(photos))
            return False
        self._mutate(photos=photos + [photo_url])
        return True

    def remove_photo(self, index: int) -> None:
        photos = list(self._state.photos or [])
        if not 0 <= index < len(photos):
            return
        del photos[index]
        self._mutate(photos=photos)

    def set_photo_slots(self, slots: list[PhotoSlot]) -> None:
        self._mutate(photo_slots=[slot.model_copy() for slot in slots])

    def add_sticker(
        self,
        sticker_id: str,
        image_url: str,
        x: float,
        y: float,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> str:
        placement = StickerPlacement(
            id=uuid.uuid4().hex,
            sticker_id=sticker_id,
            image_url=image_url,
            x=x,
            y=y,
            width=width,
            height=height,
        )
        self._mutate(stickers=list(self._state.stickers or []) + [placement])
        return placement.id

    def _update_sticker(self, placement_id: str, **fields: Any) -> bool:
        stickers = list(self._state.stickers or [])
        for i, item in enumerate(stickers):
            if item.id == placement_id:
                stickers[i] = item.model_copy(update=fields)
                self._mutate(stickers=stickers)
                return True
        return False

    def move_sticker(self, placement_id: str, x: float, y: float) -> bool:
        return self._update_sticker(placement_id, x=x, y=y)

    def resize_sticker(self, placement_id: str, width: float, height: float) -> bool:
        return self._update_sticker(placement_id, width=width, height=height)

    def remove_sticker(self, placement_id: str) -> bool:
        stickers = list(self._state.stickers or [])
        kept = [item for item in stickers if item.id != placement_id]
        if len(kept) == len(stickers):
            return False
        self._mutate(stickers=kept)
        return True

    def set_signature(self, signature_data: Optional[str]) -> None:
        self._mutate(signature_data=signature_data)

    def set_utilities(self, utilities: Optional[dict[str, Any]]) -> None:
        self._mutate(utilities=dict(utilities) if utilities is not None else None)

    # Lifecycle

    def finalize(self) -> None:
        self._require_active()
        self.lifecycle = "finalized"
        logger.info("session_finalized draft_id=%s", self.draft_id)

    def abandon(self) -> None:
        self._require_active()
        self.lifecycle = "abandoned"
        logger.info("session_abandoned draft_id=%s", self.draft_id)
