"""
Deterministic on-disk layout of an evidence pack.

Every artifact's location is a pure function of the base
directory and the run id; nothing here touches the filesystem.
"""

from __future__ import annotations

import pathlib
from dataclasses import dataclass

RUN_METADATA_FILE = "run_metadata.json"
NETWORK_HAR_FILE = "network.har"
SCREENSHOTS_DIR = "screenshots"
FULL_SCREENSHOT_FILE = "full.png"
CROP_PREFIX = "crop_"
CROP_SUFFIX = ".png"
IFRAMES_FILE = "iframes.json"
TAGS_FILE = "tags.json"
GPT_EVENTS_FILE = "gpt_events.json"


def dom_file(checkpoint: str) -> str:
    """File name of the DOM snapshot taken at *checkpoint*."""
    return f"dom_{checkpoint}.html"


def crop_file(crop_id: str) -> str:
    """File name of the screenshot crop *crop_id*."""
    return f"{CROP_PREFIX}{ensure_safe_name(crop_id, 'crop id')}{CROP_SUFFIX}"


def ensure_safe_name(name: str, label: str = "run id") -> str:
    """Return *name* if it is usable as a single path component.

    Raises:
        ValueError: If *name* is empty, ``.``/``..``, or contains a
            path separator or NUL byte.
    """
    if not name or name in (".", "..") or any(ch in name for ch in ("/", "\\", "\x00")):
        raise ValueError(f"Invalid {label}: {name!r}")
    return name


@dataclass(frozen=True)
class EvidencePackPaths:
    """Every artifact path for one pack."""

    root: pathlib.Path
    run_metadata: pathlib.Path
    network_har: pathlib.Path
    dom_initial: pathlib.Path
    dom_t3: pathlib.Path
    dom_t6: pathlib.Path
    screenshots_dir: pathlib.Path
    full_screenshot: pathlib.Path
    iframes: pathlib.Path
    tags: pathlib.Path
    gpt_events: pathlib.Path

    def dom(self, checkpoint: str) -> pathlib.Path:
        """Path of the DOM snapshot for *checkpoint* (``initial``, ``t3``, ``t6``)."""
        return {"initial": self.dom_initial, "t3": self.dom_t3, "t6": self.dom_t6}[checkpoint]

    def crop(self, crop_id: str) -> pathlib.Path:
        """Path of the named screenshot crop."""
        return self.screenshots_dir / crop_file(crop_id)


def paths_for_root(root: str | pathlib.Path) -> EvidencePackPaths:
    """Build the path set for a pack directory that already exists."""
    root = pathlib.Path(root)
    screenshots_dir = root / SCREENSHOTS_DIR
    return EvidencePackPaths(
        root=root,
        run_metadata=root / RUN_METADATA_FILE,
        network_har=root / NETWORK_HAR_FILE,
        dom_initial=root / dom_file("initial"),
        dom_t3=root / dom_file("t3"),
        dom_t6=root / dom_file("t6"),
        screenshots_dir=screenshots_dir,
        full_screenshot=screenshots_dir / FULL_SCREENSHOT_FILE,
        iframes=root / IFRAMES_FILE,
        tags=root / TAGS_FILE,
        gpt_events=root / GPT_EVENTS_FILE,
    )


def get_pack_paths(base_dir: str | pathlib.Path, run_id: str) -> EvidencePackPaths:
    """Map ``(base_dir, run_id)`` to the pack's artifact paths.

    Raises:
        ValueError: If *run_id* cannot name a directory safely.
    """
    return paths_for_root(pathlib.Path(base_dir) / ensure_safe_name(run_id))
