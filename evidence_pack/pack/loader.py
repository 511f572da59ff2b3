"""
Evidence pack loader: rebuilds a canonical ``LoadedPack`` from a
pack directory.

``run_metadata.json`` is the only required file.  Every other
artifact is read independently and simply left out when it is
missing or unreadable, so one corrupt file never costs the rest
of the pack.  Record arrays are normalised record by record (see
``evidence_pack.models.normalize``): a malformed optional field falls
back to its default, and only items that are not JSON objects are
dropped.  Colliding record ids are made unique with an index suffix.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any

import pydantic

from evidence_pack.models import evidence, normalize, records
from evidence_pack.models.base import LenientModel
from evidence_pack.models.metadata import RunMetadata
from evidence_pack.pack import paths as pack_paths
from evidence_pack.utils import errors, image, logger

log = logger.create_logger("PackLoader")

# ============================================================================
# Public API
# ============================================================================


def load_evidence_pack(pack_path: str | pathlib.Path) -> evidence.LoadedPack | None:
    """Load the pack stored at *pack_path*.

    Returns ``None`` when the directory holds no readable
    ``run_metadata.json`` (missing, not a JSON object, or without a
    non-empty run id); that is an expected answer, not an error.
    Malformed optional metadata keys read as absent and are kept
    verbatim for writing back.
    """
    paths = pack_paths.paths_for_root(pack_path)

    raw_metadata = _read_json(paths.run_metadata)
    if not isinstance(raw_metadata, dict):
        log.debug("No usable run metadata, not a pack", {"path": str(paths.root)})
        return None
    try:
        metadata = RunMetadata.model_validate(raw_metadata)
    except pydantic.ValidationError as exc:
        log.warn(
            "Run metadata has no usable run id, not a pack",
            {"path": str(paths.root), "errors": exc.error_count()},
        )
        return None
    if metadata.unparsed:
        log.warn(
            "Malformed run metadata fields read as absent",
            {"runId": metadata.run_id, "fields": ", ".join(sorted(metadata.unparsed))},
        )

    dom = evidence.DomSnapshots(**{checkpoint: _read_text(paths.dom(checkpoint)) for checkpoint in evidence.CHECKPOINTS})

    loaded = evidence.LoadedPack(
        metadata=metadata,
        network_har=_read_network_capture(paths.network_har),
        dom_snapshots=dom if dom.present() else None,
        screenshots=_index_screenshots(paths),
        iframes=normalize_iframes(_read_json(paths.iframes)),
        tags=normalize_tags(_read_json(paths.tags)),
        gpt_events=normalize_gpt_events(_read_json(paths.gpt_events)),
    )

    log.info(
        "Evidence pack loaded",
        {
            "runId": metadata.run_id,
            "iframes": _count(loaded.iframes),
            "tags": _count(loaded.tags),
            "gptEvents": _count(loaded.gpt_events),
            "domCheckpoints": len(dom.present()),
            "hasNetworkCapture": loaded.network_har is not None,
        },
    )
    return loaded


def load_pack_by_id(base_dir: str | pathlib.Path, run_id: str) -> evidence.LoadedPack | None:
    """Load ``<base_dir>/<run_id>``.

    Raises:
        ValueError: If *run_id* is not a safe directory name.
    """
    return load_evidence_pack(pack_paths.get_pack_paths(base_dir, run_id).root)


def discover_packs(base_dir: str | pathlib.Path) -> list[str]:
    """List the run ids under *base_dir* that have run metadata.

    A missing base directory yields an empty list.
    """
    base = pathlib.Path(base_dir)
    if not base.is_dir():
        return []
    return sorted(
        child.name
        for child in base.iterdir()
        if child.is_dir() and (child / pack_paths.RUN_METADATA_FILE).is_file()
    )


# ============================================================================
# Record Normalisation
# ============================================================================


def normalize_iframes(raw: Any) -> list[records.IframeRecord] | None:
    """Normalise the contents of ``iframes.json``; ``None`` if unusable."""
    return _normalize_records(raw, "iframes", records.IframeRecord, id_prefix="frame")


def normalize_tags(raw: Any) -> list[records.TagRecord] | None:
    """Normalise the contents of ``tags.json``; ``None`` if unusable."""
    return _normalize_records(raw, "tags", records.TagRecord, id_prefix="tag")


def normalize_gpt_events(raw: Any) -> list[records.GptEvent] | None:
    """Normalise the contents of ``gpt_events.json``; ``None`` if unusable."""
    return _normalize_records(raw, "events", records.GptEvent)


def _envelope_items(raw: Any, key: str) -> list[Any] | None:
    """Unwrap ``{key: [...]}``; a bare list is taken as-is."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get(key), list):
        return raw[key]
    return None


def _with_identifier(item: dict[str, Any], index: int, prefix: str) -> dict[str, Any]:
    """Fill ``id`` from ``id``/``name``, else ``<prefix>-<index>``.

    Synthesised ids follow array position, so they change if a
    producer reorders its records.
    """
    identifier = normalize.first_present(item, ("id", "name"))
    if identifier is None:
        identifier = f"{prefix}-{index}"
    return {**item, "id": str(identifier)}


def _unique_id(record_id: str, index: int, seen_ids: set[str]) -> str:
    """Suffix *record_id* with ``-<index>`` until it is unused."""
    candidate = f"{record_id}-{index}"
    while candidate in seen_ids:
        candidate = f"{candidate}-{index}"
    return candidate


def _normalize_records(
    raw: Any,
    key: str,
    model: type[LenientModel],
    id_prefix: str | None = None,
) -> list[Any] | None:
    items = _envelope_items(raw, key)
    if items is None:
        return None

    normalized: list[Any] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            log.warn("Skipping non-object record", {"array": key, "index": index})
            continue
        if id_prefix is not None:
            item = _with_identifier(item, index, id_prefix)
        context: dict[str, Any] = {}
        try:
            record = model.model_validate(item, context=context)
        except pydantic.ValidationError as exc:
            log.warn(
                "Dropping invalid record",
                {"array": key, "index": index, "errors": exc.error_count()},
            )
            continue
        if context.get("reset_fields"):
            log.warn(
                "Malformed record fields reset to defaults",
                {"array": key, "index": index, "fields": ", ".join(context["reset_fields"])},
            )
        if id_prefix is not None:
            record_id = record.id  # type: ignore[attr-defined]
            if record_id in seen_ids:
                unique = _unique_id(record_id, index, seen_ids)
                log.warn(
                    "Renaming record with duplicate id",
                    {"array": key, "index": index, "id": record_id, "newId": unique},
                )
                record = record.model_copy(update={"id": unique})
            seen_ids.add(record.id)  # type: ignore[attr-defined]
        normalized.append(record)
    return normalized


# ============================================================================
# Artifact Readers
# ============================================================================


def _read_json(path: pathlib.Path) -> Any:
    """Parse a JSON artifact; ``None`` when missing or unreadable."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        log.warn("Unreadable pack artifact, skipping", {"file": path.name, "error": errors.get_error_message(exc)})
        return None


def _read_text(path: pathlib.Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        log.warn("Unreadable DOM snapshot, skipping", {"file": path.name, "error": errors.get_error_message(exc)})
        return None


def _read_network_capture(path: pathlib.Path) -> Any:
    """Parse the HAR as JSON, falling back to its raw text.

    A file holding JSON ``null`` also comes back as its text, so a
    present capture never looks like a missing one.
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        log.warn("Unreadable network capture, skipping", {"error": errors.get_error_message(exc)})
        return None

    text = content.decode("utf-8-sig", errors="replace")
    try:
        parsed = json.loads(text)
    except ValueError:
        log.debug("Network capture is not JSON, keeping raw text", {"bytes": len(content)})
        return text
    if parsed is None:
        log.debug("Network capture is JSON null, keeping raw text", {"bytes": len(content)})
        return text
    return parsed


def _index_screenshots(paths: pack_paths.EvidencePackPaths) -> evidence.ScreenshotSet | None:
    """List the screenshots in the pack with their pixel sizes."""
    if not paths.screenshots_dir.is_dir():
        return None

    full = _screenshot_info(paths.full_screenshot) if paths.full_screenshot.is_file() else None
    crops: dict[str, evidence.ScreenshotInfo] = {}
    for file in sorted(paths.screenshots_dir.glob(f"{pack_paths.CROP_PREFIX}*{pack_paths.CROP_SUFFIX}")):
        crop_id = file.name[len(pack_paths.CROP_PREFIX) : -len(pack_paths.CROP_SUFFIX)]
        if crop_id and file.is_file():
            crops[crop_id] = _screenshot_info(file)

    if full is None and not crops:
        return None
    return evidence.ScreenshotSet(full=full, crops=crops)


def _screenshot_info(path: pathlib.Path) -> evidence.ScreenshotInfo:
    size = image.read_image_size(path)
    if size is None:
        log.warn("Screenshot is not a readable image", {"file": path.name})
        return evidence.ScreenshotInfo(name=path.name)
    return evidence.ScreenshotInfo(name=path.name, width=size[0], height=size[1])


def _count(items: list[Any] | None) -> int | None:
    return None if items is None else len(items)
