"""Shared serialization helpers for the pack's JSON artifacts.

Provides the ``snake_to_camel`` alias generator used by every
Pydantic model config and the pretty-printed JSON encoder the
writer uses for payloads that are not models.
"""

from __future__ import annotations

import json
import re
from typing import Any

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"area_pct_of_viewport"``.

    Returns:
        The camelCase equivalent, e.g. ``"areaPctOfViewport"``.
    """
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


def camel_to_snake(name: str) -> str:
    """Convert a camelCase string to snake_case (``"zIndex"`` -> ``"z_index"``)."""
    return _CAMEL_BOUNDARY_RE.sub("_", name).lower()


def dump_json(data: Any, indent: int = 2) -> str:
    """Pretty-print *data* as JSON text.

    Non-ASCII characters are written as-is so DOM-derived
    strings stay readable on disk.

    Raises:
        TypeError: If *data* contains values JSON cannot encode.
    """
    return json.dumps(data, indent=indent, ensure_ascii=False)
