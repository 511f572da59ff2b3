"""
Runtime configuration for the evidence pack codec and its HTTP surface.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, type coercion, and validation.
"""

from __future__ import annotations

import functools
import pathlib

import pydantic
import pydantic_settings


class PackSettings(pydantic_settings.BaseSettings):
    """Settings shared by the writer, loader, logger and API.

    Attributes:
        base_dir: Directory holding one sub-directory per pack.
        json_indent: Indentation for pretty-printed JSON artifacts.
        log_level: Minimum console log level (debug, info, warn, error).
        host: Bind address for the HTTP server.
        port: Bind port for the HTTP server.
    """

    base_dir: pathlib.Path = pydantic.Field(
        default=pathlib.Path("evidence_packs"), validation_alias="EVIDENCE_PACK_DIR"
    )
    json_indent: int = pydantic.Field(
        default=2, ge=0, validation_alias="EVIDENCE_PACK_JSON_INDENT"
    )
    log_level: str = pydantic.Field(
        default="info", validation_alias="LOG_LEVEL"
    )
    host: str = pydantic.Field(
        default="0.0.0.0", validation_alias="UVICORN_HOST"
    )
    port: int = pydantic.Field(
        default=3001, validation_alias="UVICORN_PORT"
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> PackSettings:
    """Return the process-wide settings (read once from the environment)."""
    return PackSettings()
