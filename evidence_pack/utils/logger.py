"""
Console logging for pack reads and writes.

Every line goes to stderr as ``[time] symbol [Context] message key=value ...``
with ANSI colours.  Lines below ``LOG_LEVEL`` are dropped.  Running timers
are kept in a ``contextvars.ContextVar`` so API requests served from the
FastAPI threadpool each see their own.
"""

from __future__ import annotations

import contextlib
import contextvars
import pathlib
import sys
import time
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import NamedTuple

from evidence_pack import config

RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"
GRAY = "\033[90m"


class _Level(NamedTuple):
    rank: int
    colour: str
    symbol: str


_LEVELS: dict[str, _Level] = {
    "debug": _Level(10, GRAY, "•"),
    "info": _Level(20, CYAN, "ℹ"),
    "success": _Level(20, GREEN, "✓"),
    "timing": _Level(20, MAGENTA, "⏱"),
    "warn": _Level(30, YELLOW, "⚠"),
    "error": _Level(40, RED, "✗"),
}

_LEVEL_NAMES = {"warning": "warn", "critical": "error"}

_MAX_TEXT = 160

# label -> (monotonic start in ms, wall-clock start)
_running: contextvars.ContextVar[dict[str, tuple[float, str]]] = contextvars.ContextVar("_running")


def _timers() -> dict[str, tuple[float, str]]:
    try:
        return _running.get()
    except LookupError:
        timers: dict[str, tuple[float, str]] = {}
        _running.set(timers)
        return timers


def _threshold() -> int:
    """Minimum rank to print, from ``LOG_LEVEL``; unknown names mean info."""
    name = config.get_settings().log_level.strip().lower()
    name = _LEVEL_NAMES.get(name, name)
    level = _LEVELS.get(name, _LEVELS["info"])
    return level.rank


def _clock() -> str:
    now = datetime.now(UTC)
    return f"{now:%H:%M:%S}.{now.microsecond // 1000:03d}"


def _format_duration(ms: float) -> str:
    """Human duration: ``12ms``, ``1.50s`` or ``2m 5.0s``."""
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60_000:
        return f"{ms / 1000:.2f}s"
    minutes, rest = divmod(ms, 60_000)
    return f"{int(minutes)}m {rest / 1000:.1f}s"


def _format_value(value: object) -> str:
    """Colour a field value by type; long text is shortened, containers are counted."""
    if value is None:
        return f"{DIM}None{RESET}"
    if isinstance(value, bool):
        return f"{GREEN if value else RED}{value}{RESET}"
    if isinstance(value, (int, float)):
        return f"{YELLOW}{value}{RESET}"
    if isinstance(value, pathlib.PurePath):
        return f"{BLUE}{value}{RESET}"
    if isinstance(value, (bytes, bytearray)):
        return f"{CYAN}<{len(value)} bytes>{RESET}"
    if isinstance(value, str):
        text = value if len(value) <= _MAX_TEXT else value[: _MAX_TEXT - 3] + "..."
        return f'{GREEN}"{text}"{RESET}'
    if isinstance(value, (list, tuple, set)):
        return f"{CYAN}[{len(value)} items]{RESET}"
    if isinstance(value, dict):
        return f"{CYAN}{{{len(value)} keys}}{RESET}"
    return str(value)


class Logger:
    """Context-prefixed console logger.

    Each method takes a message and an optional dict of fields,
    printed as ``key=value`` pairs after the message.
    """

    def __init__(self, context: str = "EvidencePack") -> None:
        self._context = context

    def _emit(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        style = _LEVELS[level]
        if style.rank < _threshold():
            return
        line = f"{GRAY}[{_clock()}]{RESET} {style.colour}{style.symbol}{RESET} {BOLD}[{self._context}]{RESET} {message}"
        if data:
            fields = " ".join(f"{DIM}{key}={RESET}{_format_value(value)}" for key, value in data.items())
            line = f"{line} {fields}"
        print(line, file=sys.stderr)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        self._emit("debug", message, data)

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        self._emit("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        self._emit("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        self._emit("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        self._emit("error", message, data)

    # ── Timing ──────────────────────────────────────────────────

    def start_timer(self, label: str) -> None:
        """Start (or restart) the timer *label* for this logger's context."""
        _timers()[f"{self._context}:{label}"] = (time.monotonic() * 1000, _clock())

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop the timer *label*, log the elapsed time and return it in ms.

        An unknown label logs a warning and returns ``0.0``.
        """
        started = _timers().pop(f"{self._context}:{label}", None)
        if started is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0
        start_ms, start_clock = started
        elapsed = time.monotonic() * 1000 - start_ms
        self._emit(
            "timing",
            f"{message or f'Completed: {label}'} {DIM}took{RESET} "
            f"{MAGENTA}{_format_duration(elapsed)}{RESET} {DIM}(started {start_clock}){RESET}",
        )
        return elapsed

    @contextlib.contextmanager
    def timed(self, label: str, message: str | None = None) -> Iterator[None]:
        """Time the enclosed block; nothing is logged if it raises."""
        self.start_timer(label)
        try:
            yield
        except BaseException:
            _timers().pop(f"{self._context}:{label}", None)
            raise
        self.end_timer(label, message)

    def section(self, title: str) -> None:
        """Print a blank-line padded banner with *title*."""
        rule = f"{BLUE}{'─' * 60}{RESET}"
        print(f"\n{rule}\n{BLUE}{BOLD}  {title}{RESET}\n{rule}\n", file=sys.stderr)


def create_logger(context: str) -> Logger:
    """Return a logger whose lines are tagged ``[context]``."""
    return Logger(context)
