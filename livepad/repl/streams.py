"""Single-use input and output channels for a REPL session.

InputChannel is a readable source: chunks are pushed in, listeners receive
them on a later event-loop turn, and "end" fires once a None push has been
reached and everything before it was delivered.

OutputChannel is a writable sink: every chunk written goes to one callback.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)

DataListener = Callable[[str], None]
EndListener = Callable[[], None]


class InputChannel:
    """Readable channel fed with chunks and closed with push(None)."""

    EVENTS = ("data", "end")

    def __init__(self) -> None:
        self._buffer: deque[str] = deque()
        self._listeners: dict[str, list[Callable]] = {event: [] for event in self.EVENTS}
        self._ended = False
        self._end_emitted = False
        self._scheduled = False

    @property
    def ended(self) -> bool:
        """True once "end" has been emitted."""
        return self._end_emitted

    def on(self, event: str, listener: Callable) -> "InputChannel":
        """Register a listener for "data" or "end"."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(listener)
        return self

    def push(self, chunk: str | None) -> None:
        """
        Buffer a chunk for delivery.

        Args:
            chunk: Text to deliver, or None to signal end of input
        """
        if self._ended:
            raise ValueError("push() after end of input")

        if chunk is None:
            self._ended = True
        else:
            self._buffer.append(chunk)

        self._schedule()

    def _schedule(self) -> None:
        if self._scheduled:
            return
        self._scheduled = True
        asyncio.get_running_loop().call_soon(self._flow)

    def _flow(self) -> None:
        self._scheduled = False

        while self._buffer:
            chunk = self._buffer.popleft()
            for listener in list(self._listeners["data"]):
                listener(chunk)

        if self._ended and not self._end_emitted:
            self._end_emitted = True
            logger.debug("Input channel drained, emitting end")
            for listener in list(self._listeners["end"]):
                listener()


class _ConsoleWriter:
    """File-like adapter that writes whole lines to an OutputChannel."""

    def __init__(self, channel: "OutputChannel"):
        self._channel = channel
        self._pending = ""

    def write(self, text: str) -> int:
        self._pending += text
        if "\n" in self._pending:
            complete, _, self._pending = self._pending.rpartition("\n")
            self._channel.write(complete + "\n")
        return len(text)

    def flush(self) -> None:
        if self._pending:
            pending, self._pending = self._pending, ""
            self._channel.write(pending)

    def isatty(self) -> bool:
        return False


class OutputChannel:
    """Writable channel passing each decoded chunk to a sink callback."""

    def __init__(self, sink: Callable[[str], None]):
        self._sink = sink
        self._writer: _ConsoleWriter | None = None

    def write(
        self,
        chunk: str | bytes,
        encoding: str = "utf-8",
        done: Callable[[], None] | None = None,
    ) -> None:
        """
        Write one chunk.

        Args:
            chunk: Text, or bytes decoded with encoding
            encoding: Encoding for bytes chunks
            done: Called once the sink has taken the chunk
        """
        if isinstance(chunk, bytes):
            chunk = chunk.decode(encoding)
        self._sink(chunk)
        if done is not None:
            done()

    def writer(self) -> _ConsoleWriter:
        """File-like view of this channel, usable as print(file=...) or sys.stdout."""
        if self._writer is None:
            self._writer = _ConsoleWriter(self)
        return self._writer
