from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SessionLifecycle = Literal["active", "finalized", "abandoned"]

DraftRecordState = Literal["draft", "finalized"]


class PhotoSlot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    slot_index: int = Field(ge=0)
    image_url: Optional[str] = None
    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0
    rotation: float = 0.0


class StickerPlacement(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    sticker_id: str
    image_url: str
    x: float
    y: float
    width: Optional[float] = None
    height: Optional[float] = None


class EnvelopeStyle(BaseModel):
    model_config = ConfigDict(extra="forbid")

    color: Optional[str] = None
    base_color: Optional[str] = None
    pattern: Optional[str] = None
    pattern_color: Optional[str] = None
    pattern_intensity: Optional[float] = None
    seal_design: Optional[str] = None
    seal_color: Optional[str] = None
    liner_pattern_type: Optional[str] = None
    liner_color: Optional[str] = None


class SessionState(BaseModel):
    """Full in-progress card draft. Optional fields stay ``None`` until chosen."""

    model_config = ConfigDict(extra="forbid")

    template_id: Optional[str] = None
    envelope_id: Optional[str] = None
    stamp_id: Optional[str] = None
    music_id: Optional[str] = None
    frame_id: Optional[str] = None
    recipient_name: Optional[str] = None
    sender_name: Optional[str] = None
    letter_pages: Optional[List[str]] = None
    rich_content: Optional[str] = None
    used_fonts: Optional[List[str]] = None
    font_style: Optional[str] = None
    text_effect: Optional[str] = None
    photos: Optional[List[str]] = None
    photo_slots: Optional[List[PhotoSlot]] = None
    stickers: Optional[List[StickerPlacement]] = None
    signature_data: Optional[str] = None
    letter_background: Optional[str] = None
    letter_pattern: Optional[str] = None
    letter_container_background: Optional[str] = None
    cover_background: Optional[str] = None
    cover_pattern: Optional[str] = None
    photo_background: Optional[str] = None
    photo_pattern: Optional[str] = None
    signature_background: Optional[str] = None
    signature_pattern: Optional[str] = None
    envelope: Optional[EnvelopeStyle] = None
    utilities: Optional[Dict[str, Any]] = None


class DraftPayload(BaseModel):
    """Canonical flattening of :class:`SessionState`; field order is the wire order."""

    model_config = ConfigDict(extra="forbid")

    template_id: Optional[str] = None
    envelope_id: Optional[str] = None
    stamp_id: Optional[str] = None
    music_id: Optional[str] = None
    recipient_name: str = ""
    sender_name: str = ""
    content: str = ""
    rich_content: Optional[str] = None
    used_fonts: Optional[List[str]] = None
    font_style: str = "serif"
    text_effect: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    frame_id: Optional[str] = None
    photo_slots: List[PhotoSlot] = Field(default_factory=list)
    stickers: List[StickerPlacement] = Field(default_factory=list)
    signature_data: Optional[str] = None
    letter_background: str = "#ffffff"
    letter_pattern: str = "solid"
    letter_container_background: str = (
        "linear-gradient(to bottom right, rgba(254, 243, 199, 0.3), rgba(254, 226, 226, 0.2))"
    )
    cover_background: str = "#fdf2f8"
    cover_pattern: str = "solid"
    photo_background: str = "#fff8e1"
    photo_pattern: str = "solid"
    signature_background: str = "#fce4ec"
    signature_pattern: str = "solid"
    envelope_color: Optional[str] = None
    envelope_pattern: str = "solid"
    envelope_pattern_color: str = "#5d4037"
    envelope_pattern_intensity: float = 0.15
    envelope_seal_design: str = "heart"
    envelope_seal_color: str = "#c62828"
    envelope_liner_pattern_type: Optional[str] = None
    envelope_liner_color: str = "#ffffff"
    utilities: Optional[Dict[str, Any]] = None


AuditEventType = Literal[
    "DRAFT_CREATED",
    "DRAFT_UPDATED",
    "DRAFT_FINALIZED",
]


class AuditEvent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ts_iso: str
    draft_id: str
    type: AuditEventType
    code: str
    revision: int = Field(ge=0)
    field_names: List[str] = Field(default_factory=list)
    note: str = ""
    duration_ms: Optional[int] = None
