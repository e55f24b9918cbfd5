"""Diagnostics sinks.

The interpreter reports progress and captured console lines to a sink that
is handed to it at construction. Nothing here is process-global.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Anything that accepts diagnostic lines."""

    def append_line(self, text: str) -> None: ...


class LoggingDiagnostics:
    """Forward diagnostic lines to a logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger("livepad.diagnostics")
        self.level = level

    def append_line(self, text: str) -> None:
        self.logger.log(self.level, text)


class MemoryDiagnostics:
    """Keep diagnostic lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def append_line(self, text: str) -> None:
        self.lines.append(text)

    def clear(self) -> None:
        self.lines.clear()
