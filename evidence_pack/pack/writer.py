"""
Evidence pack writer: serializes one run's capture into the
fixed directory layout described in ``paths``.

Every payload is encoded in memory first, so malformed input
(bad base64, unsafe crop ids, unserializable captures) fails
before anything is written.  Files are then written one by one,
each via a temporary sibling and ``replace`` so a reader never
sees a half-written artifact.  Optional artifacts that were not
supplied are never created, not even as placeholders; rewriting
the same run id overwrites in place.
"""

from __future__ import annotations

import contextlib
import pathlib
from collections.abc import Mapping
from typing import Any

from evidence_pack import config
from evidence_pack.models import evidence, records
from evidence_pack.pack import paths as pack_paths
from evidence_pack.utils import errors, image, logger, serialization

log = logger.create_logger("PackWriter")


def write_evidence_pack(
    base_dir: str | pathlib.Path,
    capture: evidence.PackCapture | Mapping[str, Any],
) -> pack_paths.EvidencePackPaths:
    """Write *capture* under ``<base_dir>/<run_id>/``.

    Args:
        base_dir: Directory holding one sub-directory per pack.
        capture: The capture to persist, as a model or a raw
            mapping in the canonical camelCase layout.

    Returns:
        The full path set for the pack, whichever optional
        artifacts were actually written.

    Raises:
        ValueError: If the capture cannot be encoded.
        PackWriteError: If storage rejects a write.
    """
    if not isinstance(capture, evidence.PackCapture):
        capture = evidence.PackCapture.model_validate(capture)

    paths = pack_paths.get_pack_paths(base_dir, capture.run_id)
    staged = _stage_artifacts(capture, paths, config.get_settings().json_indent)

    with log.timed(capture.run_id, f"Evidence pack written ({len(staged)} files)"):
        for target, payload in staged:
            _write_atomic(capture.run_id, target, payload)
    log.debug("Pack location", {"runId": capture.run_id, "root": paths.root})
    return paths


def _stage_artifacts(
    capture: evidence.PackCapture,
    paths: pack_paths.EvidencePackPaths,
    indent: int,
) -> list[tuple[pathlib.Path, bytes]]:
    """Encode every artifact of *capture* into ``(target, bytes)`` pairs."""
    staged: list[tuple[pathlib.Path, bytes]] = [
        (paths.run_metadata, _model_json(capture.metadata, indent)),
    ]

    if capture.network_har is not None:
        staged.append((paths.network_har, _encode_har(capture.network_har, indent)))

    if capture.dom_snapshots is not None:
        for checkpoint, text in capture.dom_snapshots.present().items():
            staged.append((paths.dom(checkpoint), text.encode("utf-8")))

    shots = capture.screenshots
    if shots is not None:
        if shots.full is not None:
            staged.append((paths.full_screenshot, image.decode_image_payload(shots.full)))
        for crop_id, data in shots.crops.items():
            staged.append((paths.crop(crop_id), image.decode_image_payload(data)))

    if capture.iframes is not None:
        staged.append((paths.iframes, _model_json(records.IframeEnvelope(iframes=capture.iframes), indent)))
    if capture.tags is not None:
        staged.append((paths.tags, _model_json(records.TagEnvelope(tags=capture.tags), indent)))
    if capture.gpt_events is not None:
        staged.append((paths.gpt_events, _model_json(records.GptEventEnvelope(events=capture.gpt_events), indent)))

    return staged


def _model_json(model: Any, indent: int) -> bytes:
    return model.model_dump_json(by_alias=True, indent=indent).encode("utf-8")


def _encode_har(har: Any, indent: int) -> bytes:
    """Bytes and text pass through; anything else becomes pretty JSON."""
    if isinstance(har, (bytes, bytearray)):
        return bytes(har)
    if isinstance(har, str):
        return har.encode("utf-8")
    try:
        return serialization.dump_json(har, indent).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Network capture is not JSON-serializable: {exc}") from exc


def _write_atomic(run_id: str, target: pathlib.Path, payload: bytes) -> None:
    """Write *payload* to *target* through a temporary sibling file."""
    tmp = target.with_name(f".{target.name}.tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(payload)
        tmp.replace(target)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)
        log.error(
            "Failed to write pack artifact",
            {"runId": run_id, "path": str(target), "error": errors.get_error_message(exc)},
        )
        raise errors.PackWriteError(run_id, str(target), errors.get_error_message(exc)) from exc
