"""Pydantic models for whole packs: the write-side capture and the loaded record."""

from __future__ import annotations

from typing import Any, Literal

import pydantic

from evidence_pack.models import records
from evidence_pack.models.base import PackModel
from evidence_pack.models.metadata import RunMetadata

Checkpoint = Literal["initial", "t3", "t6"]

CHECKPOINTS: tuple[Checkpoint, ...] = ("initial", "t3", "t6")


class DomSnapshots(PackModel):
    """Serialized DOM text at the three capture checkpoints."""

    initial: str | None = None
    t3: str | None = None
    t6: str | None = None

    def present(self) -> dict[Checkpoint, str]:
        """Return only the checkpoints that were captured."""
        return {name: text for name in CHECKPOINTS if (text := getattr(self, name)) is not None}


class ScreenshotPayloads(PackModel):
    """Screenshots handed to the writer.

    Each image is raw bytes, a base64 string, or a base64
    ``data:`` URL; the writer decodes before writing.
    """

    full: bytes | str | None = None
    crops: dict[str, bytes | str] = pydantic.Field(default_factory=dict)


class PackCapture(PackModel):
    """Everything the capture stage produced for one run.

    The run id is always taken from ``metadata.run_id``.
    ``network_har`` is opaque: bytes and strings are written
    verbatim, anything else as pretty-printed JSON.
    """

    metadata: RunMetadata
    network_har: Any = None
    dom_snapshots: DomSnapshots | None = None
    screenshots: ScreenshotPayloads | None = None
    iframes: list[records.IframeRecord] | None = None
    tags: list[records.TagRecord] | None = None
    gpt_events: list[records.GptEvent] | None = None

    @property
    def run_id(self) -> str:
        return self.metadata.run_id


class ScreenshotInfo(PackModel):
    """A screenshot file found in a pack; size is ``None`` if unreadable."""

    name: str
    width: int | None = None
    height: int | None = None


class ScreenshotSet(PackModel):
    """Index of the screenshots present in a pack."""

    full: ScreenshotInfo | None = None
    crops: dict[str, ScreenshotInfo] = pydantic.Field(default_factory=dict)


class LoadedPack(PackModel):
    """Canonical reconstruction of a pack directory.

    Optional fields are ``None`` when the artifact is missing or
    unreadable, which is distinct from an empty list.
    """

    metadata: RunMetadata
    network_har: Any = None
    dom_snapshots: DomSnapshots | None = None
    screenshots: ScreenshotSet | None = None
    iframes: list[records.IframeRecord] | None = None
    tags: list[records.TagRecord] | None = None
    gpt_events: list[records.GptEvent] | None = None
