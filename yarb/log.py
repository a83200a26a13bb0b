"""Console and file logging with a global verbosity level."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import TextIO


class Level(IntEnum):
    """Verbosity levels; a message is shown when the current level is at least its own."""

    INFO = 0
    WARNING = 1
    ERROR = 2
    DEBUG = 3


class _LogState:
    def __init__(self) -> None:
        self.level: Level = Level.ERROR
        self.file: TextIO | None = None


_state = _LogState()


def set_level(level: int) -> None:
    """Set the verbosity level; raises ValueError for an unknown level."""
    _state.level = Level(level)


def _println(mode: str, ident: str, message: str) -> None:
    timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S")
    line = f"[{timestamp}] [{ident}] [{mode}] {message}"
    print(line, file=sys.stdout)
    if _state.file is not None:
        _state.file.write(line + "\n")
        _state.file.flush()


def info(ident: str, message: str) -> None:
    """Log an informational message; always shown."""
    _println("INFO", ident, message)


def warning(ident: str, message: str) -> None:
    """Log a warning."""
    if _state.level < Level.WARNING:
        return
    _println("WARNING", ident, message)


def error(ident: str, message: str) -> None:
    """Log an error."""
    if _state.level < Level.ERROR:
        return
    _println("ERROR", ident, message)


def debug(ident: str, message: str) -> None:
    """Log a debug message; shown only at the DEBUG level."""
    if _state.level < Level.DEBUG:
        return
    _println("DEBUG", ident, message)


def open_log_file(path: str | Path) -> None:
    """Start mirroring log lines into a freshly truncated file."""
    close_log_file()
    _state.file = open(path, "w", encoding="utf-8")


def close_log_file() -> None:
    """Flush and close the log file, if one is open."""
    if _state.file is not None:
        _state.file.flush()
        _state.file.close()
        _state.file = None