"""Image helpers for pack screenshots.

Screenshots reach the writer either as raw PNG bytes or as
base64 text (optionally a ``data:image/png;base64,...`` URL, the
form browser tooling hands back).  Everything is normalised to
bytes before it touches disk.  On the read side only the image
header is inspected, so indexing a pack never decodes pixels.
"""

from __future__ import annotations

import base64
import binascii
import pathlib
import re

from PIL import Image

_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def decode_image_payload(data: bytes | bytearray | str) -> bytes:
    """Normalise a screenshot payload to binary.

    Args:
        data: Raw image bytes, a base64 string, or a base64
            ``data:`` URL.

    Returns:
        The decoded image bytes.

    Raises:
        ValueError: If a string payload is not valid base64.
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)

    text = _DATA_URL_RE.sub("", data.strip(), count=1)
    text = _WHITESPACE_RE.sub("", text)
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 image payload: {exc}") from exc


def read_image_size(path: pathlib.Path) -> tuple[int, int] | None:
    """Read ``(width, height)`` from an image file header.

    Returns ``None`` when the file is missing or is not an
    image Pillow can identify.
    """
    try:
        with Image.open(path) as img:
            return img.width, img.height
    except (OSError, ValueError, Image.DecompressionBombError):
        return None
