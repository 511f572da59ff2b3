"""Pydantic models for the evidentiary record arrays.

Each record accepts both the canonical camelCase layout and the
legacy layouts listed in ``normalize``; the ``mode="before"``
validators map legacy keys onto canonical ones before field
validation, so validating an already-canonical record is a no-op.
Records are lenient: an optional field with the wrong shape falls
back to its default rather than costing the whole record.
Identifier synthesis needs the record's position in its array and
therefore happens in the loader, not here.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, get_args

import pydantic

from evidence_pack.models import normalize
from evidence_pack.models.base import LenientModel, PackModel

Number = int | float

TagType = Literal["GTM", "GA4", "UA", "Ads", "Custom"]

GptEventType = Literal["slotRenderEnded", "impressionViewable", "adRequested"]

TAG_TYPES: tuple[str, ...] = get_args(TagType)
GPT_EVENT_TYPES: tuple[str, ...] = get_args(GptEventType)

DEFAULT_TAG_TYPE: TagType = "Custom"
DEFAULT_GPT_EVENT_TYPE: GptEventType = "adRequested"


class TriState(enum.Enum):
    """An optional observation: known true, known false, or unknown.

    ``UNKNOWN`` is written as an absent key, never as ``false``.
    """

    UNKNOWN = "unknown"
    TRUE = "true"
    FALSE = "false"

    @classmethod
    def coerce(cls, value: Any) -> TriState:
        """Map a raw JSON value onto a tri-state.

        Booleans and the strings ``"true"``/``"false"`` are
        understood; everything else is ``UNKNOWN``.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        if isinstance(value, str):
            folded = value.strip().casefold()
            if folded == "true":
                return cls.TRUE
            if folded == "false":
                return cls.FALSE
        return cls.UNKNOWN

    def to_optional(self) -> bool | None:
        """Return ``True``/``False``, or ``None`` when unknown."""
        if self is TriState.UNKNOWN:
            return None
        return self is TriState.TRUE


# ── Iframes ─────────────────────────────────────────────────────


class BoundingBox(LenientModel):
    """Frame geometry in CSS pixels; missing axes are 0."""

    x: Number = 0
    y: Number = 0
    width: Number = 0
    height: Number = 0

    @pydantic.model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class FrameOverlap(LenientModel):
    """Share of this frame covered by another frame."""

    other_id: str
    pct: Number = 0


class IframeRecord(LenientModel):
    """Observed geometry and classification of one nested frame."""

    id: str
    src: str | None = None
    bbox: BoundingBox = pydantic.Field(default_factory=BoundingBox)
    z_index: int | str | None = None
    visibility: str | None = None
    opacity: Number | None = None
    in_viewport_pct: Number = 0
    area_pct_of_viewport: Number = 0
    overlap_pct_with: list[FrameOverlap] | None = None
    is_tiny: TriState = TriState.UNKNOWN
    is_hidden: TriState = TriState.UNKNOWN
    is_ad_iframe: TriState = TriState.UNKNOWN

    @pydantic.model_validator(mode="before")
    @classmethod
    def _migrate_legacy(cls, data: Any) -> Any:
        """Resolve legacy iframe keys and derived fallbacks."""
        if not isinstance(data, dict):
            return data
        data = normalize.resolve_aliases(data, normalize.IFRAME_ALIASES)

        if normalize.first_present(data, ("inViewportPct", "in_viewport_pct")) is None:
            data.pop("in_viewport_pct", None)
            in_viewport = data.get("inViewport")
            if isinstance(in_viewport, bool):
                data["inViewportPct"] = 100 if in_viewport else 0
            else:
                data.pop("inViewportPct", None)

        if normalize.first_present(data, ("isAdIframe", "is_ad_iframe")) is None:
            data.pop("is_ad_iframe", None)
            classification = data.get("classification")
            if classification is not None:
                data["isAdIframe"] = classification == "ad"
        return data

    @pydantic.field_validator("is_tiny", "is_hidden", "is_ad_iframe", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> TriState:
        return TriState.coerce(value)

    @pydantic.field_serializer("is_tiny", "is_hidden", "is_ad_iframe")
    def _dump_flag(self, value: TriState) -> bool | None:
        return value.to_optional()


# ── Tag manager ─────────────────────────────────────────────────


class TagRecord(LenientModel):
    """One tag-management entity seen during the run."""

    id: str
    type: TagType = DEFAULT_TAG_TYPE
    name: str | None = None
    container_id: str | None = None
    triggers: list[str] | None = None
    fired: TriState = TriState.UNKNOWN
    frame_url: str | None = None
    page_url: str | None = None

    @pydantic.model_validator(mode="before")
    @classmethod
    def _migrate_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return normalize.resolve_aliases(data, normalize.TAG_ALIASES)

    @pydantic.field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        return normalize.normalize_choice(value, TAG_TYPES, DEFAULT_TAG_TYPE)

    @pydantic.field_validator("fired", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> TriState:
        return TriState.coerce(value)

    @pydantic.field_serializer("fired")
    def _dump_flag(self, value: TriState) -> bool | None:
        return value.to_optional()


# ── Google Publisher Tag events ─────────────────────────────────


class GptEvent(LenientModel):
    """One timestamped ad-serving event from the GPT event stream."""

    ts: Number = 0
    type: GptEventType = DEFAULT_GPT_EVENT_TYPE
    slot_id: str | None = None
    ad_unit_path: str | None = None
    request_id: str | None = None
    size: tuple[Number, Number] | None = None
    payload: dict[str, Any] | None = None

    @pydantic.model_validator(mode="before")
    @classmethod
    def _migrate_legacy(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return normalize.resolve_aliases(data, normalize.GPT_EVENT_ALIASES)

    @pydantic.field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> str:
        return normalize.normalize_choice(value, GPT_EVENT_TYPES, DEFAULT_GPT_EVENT_TYPE)

    @pydantic.field_validator("size", mode="before")
    @classmethod
    def _parse_size(cls, value: Any) -> tuple[Number, Number] | None:
        return normalize.parse_size(value)

    @pydantic.field_validator("payload", mode="before")
    @classmethod
    def _opaque_payload(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None


# ── Envelopes ───────────────────────────────────────────────────


class IframeEnvelope(PackModel):
    """Contents of ``iframes.json``."""

    iframes: list[IframeRecord]


class TagEnvelope(PackModel):
    """Contents of ``tags.json``."""

    tags: list[TagRecord]


class GptEventEnvelope(PackModel):
    """Contents of ``gpt_events.json``."""

    events: list[GptEvent]
