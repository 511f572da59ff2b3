"""Field-alias tables and value normalisers for evidentiary records.

Several generations of the capture stage wrote the same facts
under different keys.  Each record kind declares an ordered
table of ``canonical key -> legacy keys``; ``resolve_aliases``
is the single resolver that applies any of them.  The canonical
(camelCase) key, or the model's snake_case attribute name, always
wins; legacy keys are consulted in table order and a ``null`` value
counts as absent.

Everything here is pure: inputs are never mutated.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from evidence_pack.utils import serialization

AliasTable = Mapping[str, tuple[str, ...]]

IFRAME_ALIASES: AliasTable = {
    "id": ("name",),
    "bbox": ("boundingBox",),
    "areaPctOfViewport": ("viewportCoveragePct",),
    "overlapPctWith": ("overlapPairs",),
    "isTiny": ("tinyFlag",),
    "isHidden": ("hiddenFlag", "offscreenFlag"),
}

TAG_ALIASES: AliasTable = {
    "id": ("name",),
    "type": ("kind",),
    "frameUrl": ("pageUrl",),
}

GPT_EVENT_ALIASES: AliasTable = {
    "ts": ("timestamp", "time"),
    "type": ("event",),
    "adUnitPath": ("adUnit",),
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[xX]\s*(\d+(?:\.\d+)?)\s*$")


def first_present(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the value of the first key in *keys* that is set and not ``None``."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def resolve_aliases(raw: Mapping[str, Any], table: AliasTable) -> dict[str, Any]:
    """Return a copy of *raw* with every canonical key in *table* resolved.

    For each canonical key the lookup order is: the camelCase key,
    its snake_case attribute name, then the legacy keys in order.
    When nothing is found the canonical key is removed so the
    model default applies.  Keys outside the table pass through.
    """
    data = dict(raw)
    for canonical, legacy in table.items():
        attribute = serialization.camel_to_snake(canonical)
        value = first_present(data, (canonical, attribute, *legacy))
        data.pop(attribute, None)
        if value is None:
            data.pop(canonical, None)
        else:
            data[canonical] = value
    return data


def parse_size(value: Any) -> tuple[int | float, int | float] | None:
    """Parse an ad size from ``[w, h]`` or ``"WxH"``.

    Any other shape, including pairs holding non-numbers, yields
    ``None``.
    """
    if isinstance(value, (list, tuple)):
        if len(value) == 2 and all(_is_number(v) for v in value):
            return value[0], value[1]
        return None
    if isinstance(value, str):
        match = _SIZE_RE.match(value)
        if match:
            return _to_number(match.group(1)), _to_number(match.group(2))
    return None


def normalize_choice(value: Any, choices: Sequence[str], default: str) -> str:
    """Map *value* onto a closed set of type tags.

    Exact matches win, then case-insensitive ones; anything
    else (including non-strings) collapses to *default*.
    """
    if not isinstance(value, str):
        return default
    if value in choices:
        return value
    folded = value.strip().casefold()
    for choice in choices:
        if choice.casefold() == folded:
            return choice
    return default


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(text: str) -> int | float:
    number = float(text)
    return int(number) if number.is_integer() else number
