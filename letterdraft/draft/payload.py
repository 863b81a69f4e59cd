from __future__ import annotations

"""
Build the canonical draft payload from session state, and the reverse.

Design intent:
- An absent optional field and its explicit default serialize identically.
- Output is deterministic and order-stable so string equality means "unchanged".
"""

from typing import Any, Mapping, Optional, TypeVar

from pydantic import ValidationError

from letterdraft.internal_core.contracts import (
    DraftPayload,
    EnvelopeStyle,
    PhotoSlot,
    SessionState,
    StickerPlacement,
)
from letterdraft.letter.codec import join_pages, split_pages

_T = TypeVar("_T")

_DEFAULTS = DraftPayload()


def _or(value: Optional[_T], default: _T) -> _T:
    return default if value is None else value


def build_draft_payload(state: SessionState) -> DraftPayload:
    envelope = state.envelope or EnvelopeStyle()
    return DraftPayload(
        template_id=state.template_id,
        envelope_id=state.envelope_id,
        stamp_id=state.stamp_id,
        music_id=state.music_id,
        recipient_name=_or(state.recipient_name, ""),
        sender_name=_or(state.sender_name, ""),
        content=join_pages(state.letter_pages) if state.letter_pages else "",
        rich_content=state.rich_content,
        used_fonts=list(state.used_fonts) if state.used_fonts is not None else None,
        font_style=_or(state.font_style, _DEFAULTS.font_style),
        text_effect=state.text_effect,
        photos=list(state.photos or []),
        frame_id=state.frame_id,
        photo_slots=[slot.model_copy() for slot in state.photo_slots or []],
        stickers=[item.model_copy() for item in state.stickers or []],
        signature_data=state.signature_data,
        letter_background=_or(state.letter_background, _DEFAULTS.letter_background),
        letter_pattern=_or(state.letter_pattern, _DEFAULTS.letter_pattern),
        letter_container_background=_or(
            state.letter_container_background, _DEFAULTS.letter_container_background
        ),
        cover_background=_or(state.cover_background, _DEFAULTS.cover_background),
        cover_pattern=_or(state.cover_pattern, _DEFAULTS.cover_pattern),
        photo_background=_or(state.photo_background, _DEFAULTS.photo_background),
        photo_pattern=_or(state.photo_pattern, _DEFAULTS.photo_pattern),
        signature_background=_or(state.signature_background, _DEFAULTS.signature_background),
        signature_pattern=_or(state.signature_pattern, _DEFAULTS.signature_pattern),
        envelope_color=envelope.color if envelope.color is not None else envelope.base_color,
        envelope_pattern=_or(envelope.pattern, _DEFAULTS.envelope_pattern),
        envelope_pattern_color=_or(envelope.pattern_color, _DEFAULTS.envelope_pattern_color),
        envelope_pattern_intensity=_or(
            envelope.pattern_intensity, _DEFAULTS.envelope_pattern_intensity
        ),
        envelope_seal_design=_or(envelope.seal_design, _DEFAULTS.envelope_seal_design),
        envelope_seal_color=_or(envelope.seal_color, _DEFAULTS.envelope_seal_color),
        envelope_liner_pattern_type=envelope.liner_pattern_type,
        envelope_liner_color=_or(envelope.liner_color, _DEFAULTS.envelope_liner_color),
        # Empty utilities collapse to null like an absent map.
        utilities=dict(state.utilities) if state.utilities else None,
    )


def canonical_payload(state: SessionState) -> str:
    return build_draft_payload(state).model_dump_json()


def session_state_from_record(record: Mapping[str, Any]) -> SessionState:
    """Rebuild session state from a stored draft record.

    Unknown keys (ids, timestamps) are ignored; malformed nested entries are
    dropped rather than failing the whole resume.
    """
    payload_fields = {k: record[k] for k in DraftPayload.model_fields if k in record}

    def _items(key: str, model):
        out = []
        for raw in payload_fields.get(key) or []:
            try:
                out.append(model.model_validate(raw))
            except ValidationError:
                continue
        return out

    content = payload_fields.get("content")
    envelope_keys = {
        "color": "envelope_color",
        "pattern": "envelope_pattern",
        "pattern_color": "envelope_pattern_color",
        "pattern_intensity": "envelope_pattern_intensity",
        "seal_design": "envelope_seal_design",
        "seal_color": "envelope_seal_color",
        "liner_pattern_type": "envelope_liner_pattern_type",
        "liner_color": "envelope_liner_color",
    }
    envelope = {attr: payload_fields[key] for attr, key in envelope_keys.items() if key in payload_fields}

    return SessionState(
        template_id=payload_fields.get("template_id"),
        envelope_id=payload_fields.get("envelope_id"),
        stamp_id=payload_fields.get("stamp_id"),
        music_id=payload_fields.get("music_id"),
        frame_id=payload_fields.get("frame_id"),
        recipient_name=payload_fields.get("recipient_name"),
        sender_name=payload_fields.get("sender_name"),
        letter_pages=split_pages(content) if content else None,
        rich_content=payload_fields.get("rich_content"),
        used_fonts=payload_fields.get("used_fonts"),
        font_style=payload_fields.get("font_style"),
        text_effect=payload_fields.get("text_effect"),
        photos=payload_fields.get("photos"),
        photo_slots=_items("photo_slots", PhotoSlot) or None,
        stickers=_items("stickers", StickerPlacement) or None,
        signature_data=payload_fields.get("signature_data"),
        letter_background=payload_fields.get("letter_background"),
        letter_pattern=payload_fields.get("letter_pattern"),
        letter_container_background=payload_fields.get("letter_container_background"),
        cover_background=payload_fields.get("cover_background"),
        cover_pattern=payload_fields.get("cover_pattern"),
        photo_background=payload_fields.get("photo_background"),
        photo_pattern=payload_fields.get("photo_pattern"),
        signature_background=payload_fields.get("signature_background"),
        signature_pattern=payload_fields.get("signature_pattern"),
        envelope=EnvelopeStyle(**envelope) if envelope else None,
        utilities=payload_fields.get("utilities"),
    )
