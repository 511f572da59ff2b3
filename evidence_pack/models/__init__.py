# Models package: re-exports the pack models.
# Prefer importing from the specific submodule (e.g. evidence_pack.models.records).

from evidence_pack.models.evidence import (
    CHECKPOINTS as CHECKPOINTS,
    Checkpoint as Checkpoint,
    DomSnapshots as DomSnapshots,
    LoadedPack as LoadedPack,
    PackCapture as PackCapture,
    ScreenshotInfo as ScreenshotInfo,
    ScreenshotPayloads as ScreenshotPayloads,
    ScreenshotSet as ScreenshotSet,
)
from evidence_pack.models.metadata import (
    RunMetadata as RunMetadata,
    Viewport as Viewport,
)
from evidence_pack.models.records import (
    BoundingBox as BoundingBox,
    FrameOverlap as FrameOverlap,
    GptEvent as GptEvent,
    GptEventEnvelope as GptEventEnvelope,
    GptEventType as GptEventType,
    IframeEnvelope as IframeEnvelope,
    IframeRecord as IframeRecord,
    TagEnvelope as TagEnvelope,
    TagRecord as TagRecord,
    TagType as TagType,
    TriState as TriState,
)
