"""Output helpers for the resource executables.

Concourse reads the JSON payload from stdout, so everything meant for a
human goes to stderr through a ``Reporter``. The reporter is created by the
entry points and handed down explicitly; nothing here is global.
"""

from __future__ import annotations

import sys
from typing import NoReturn, TextIO

LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}


def normalize_level(level: str | None) -> str:
    """Map a user supplied log level onto one of ``LEVELS``.

    Unknown or empty values fall back to INFO; ``WARNING`` is accepted as
    an alias of ``WARN``.
    """
    name = (level or "").strip().upper()
    if name == "WARNING":
        name = "WARN"
    return name if name in LEVELS else "INFO"


class Reporter:
    """Leveled, print-based logger writing to a single stream."""

    def __init__(self, level: str | None = "INFO", stream: TextIO | None = None):
        self.level = normalize_level(level)
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved lazily so pytest's capsys sees the output.
        return self._stream if self._stream is not None else sys.stderr

    def enabled(self, level: str) -> bool:
        return LEVELS[level] >= LEVELS[self.level]

    def log(self, level: str, msg: str) -> None:
        if self.enabled(level):
            print(msg, file=self.stream)

    def debug(self, msg: str) -> None:
        self.log("DEBUG", msg)

    def info(self, msg: str) -> None:
        self.log("INFO", msg)

    def warning(self, msg: str) -> None:
        self.log("WARN", f"WARN: {msg}")

    def error(self, msg: str) -> None:
        self.log("ERROR", f"ERROR: {msg}")

    def step(self, msg: str) -> None:
        """Print a visually distinct step header.

        Used to separate the phases of a check or an upload in the build log.
        """
        if self.enabled("INFO"):
            print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}", file=self.stream)

    def fatal(self, msg: str) -> NoReturn:
        """Print an error message and exit with code 1.

        Always printed, whatever the configured level.
        """
        print(f"ERROR: {msg}", file=self.stream)
        sys.exit(1)
