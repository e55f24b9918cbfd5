"""
Live re-interpretation of an edited document.

Each edit reports the inserted text and the full document. An edit that
contains a statement terminator or a newline is interpreted right away;
any other edit (typing in the middle of a line) restarts a debounce timer
and the document is interpreted once typing pauses.

Usage:
    live = LiveInterpreter(InterpreterEngine(), publish=print)
    await live.on_change(";", "x = 1;")
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Callable

from .config import LivepadConfig, default_config
from .diagnostics import DiagnosticsSink, LoggingDiagnostics
from .render import render_transcript
from .repl.interpreter import InterpreterEngine

logger = logging.getLogger(__name__)

Publisher = Callable[[str], Any]


class LiveInterpreter:
    """
    Debounced interpretation driver for one document.

    Args:
        engine: Engine doing the interpretation
        publish: Receives the rendered document; may be a coroutine function
        config: Debounce delay, triggers and result prefix
        diagnostics: Sink for errors
    """

    def __init__(
        self,
        engine: InterpreterEngine,
        publish: Publisher,
        config: LivepadConfig | None = None,
        diagnostics: DiagnosticsSink | None = None,
    ):
        self.engine = engine
        self.publish = publish
        self.config = config or default_config
        self.diagnostics = diagnostics or LoggingDiagnostics()

        self._pending: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        """True while a debounced interpretation is waiting."""
        return self._pending is not None and not self._pending.done()

    def is_immediate(self, delta: str) -> bool:
        """Whether an edit should be interpreted without waiting."""
        return any(trigger in delta for trigger in self.config.immediate_triggers)

    async def on_change(self, delta: str, document_text: str) -> bool | None:
        """
        React to an edit.

        Args:
            delta: Text inserted by the edit
            document_text: Full document after the edit

        Returns:
            interpret() outcome when run right away, None when debounced
        """
        self._cancel_pending()

        if self.is_immediate(delta):
            return await self.interpret(document_text)

        self._pending = asyncio.create_task(self._interpret_later(document_text))
        return None

    async def _interpret_later(self, document_text: str) -> None:
        await asyncio.sleep(self.config.debounce_ms / 1000)
        # Past this point the interpretation runs to completion
        self._pending = None
        await self.interpret(document_text)

    def _cancel_pending(self) -> asyncio.Task | None:
        task, self._pending = self._pending, None
        if task is None or task.done():
            return None
        logger.debug("Cancelling debounced interpretation")
        task.cancel()
        return task

    async def interpret(self, document_text: str) -> bool:
        """
        Interpret the document and publish the rendered transcript.

        Returns:
            True on success, False if anything failed (reported to diagnostics)
        """
        async with self._lock:
            try:
                transcript = await self.engine.interpret(document_text)
                rendered = render_transcript(transcript, self.config.result_prefix)
                outcome = self.publish(rendered.document)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning(f"Interpretation failed: {e}")
                self.diagnostics.append_line(str(e))
                return False

        return True

    async def aclose(self) -> None:
        """Drop any debounced interpretation and wait for it to unwind."""
        task = self._cancel_pending()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
