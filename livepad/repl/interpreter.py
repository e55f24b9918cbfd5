"""
Interpreter engine - turns a code block into an ordered transcript.

The block is fed line by line into a fresh REPL session. Results arrive
through the session's evaluation callback, console text through its output
channel, and the transcript is assembled once the input channel ends:

    code/result entries (in insertion order), then output entries

Result placement: after the callback for statement number ``line_count``,
a result goes to index ``(line_count - 1) + result_count`` where
``result_count`` already includes the new result. With all code lines pushed
up front this lands each result right after the line that produced it.

Usage:
    engine = InterpreterEngine()
    transcript = await engine.interpret("x = 1\\nx + 1")
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..config import LivepadConfig, default_config
from ..diagnostics import DiagnosticsSink, LoggingDiagnostics
from ..types import (
    EntryKind,
    EvaluationSetupError,
    StatementEvaluationError,
    Transcript,
    TranscriptEntry,
    printable,
)
from .import_rewriter import rewrite_imports
from .session import EvalCallback, EvalHook, start
from .streams import InputChannel, OutputChannel

logger = logging.getLogger(__name__)

# Prompt and placeholder text the session writes that is not user output
REPL_CHROME = frozenset({"undefined", "...", ""})

_LINE_BREAK = re.compile(r"\r\n|\n")


def split_lines(code: str) -> list[str]:
    """Split on CRLF or LF; a trailing break yields a final empty line."""
    return _LINE_BREAK.split(code)


@dataclass
class EvaluatorSlots:
    """
    Evaluation hooks the engine works with.

    default_evaluator is captured from the first session and kept for the
    engine's lifetime; active_evaluator is the wrapper installed on the
    current session.
    """

    default_evaluator: EvalHook | None = None
    active_evaluator: EvalHook | None = None


@dataclass
class TranscriptBuilder:
    """Per-call transcript state, mutated only from channel and session callbacks."""

    entries: list[TranscriptEntry] = field(default_factory=list)
    console: list[str] = field(default_factory=list)
    line_count: int = 0
    result_count: int = 0

    def add_code(self, line: str) -> None:
        self.entries.append(TranscriptEntry(kind=EntryKind.CODE, text=line))

    def add_result(self, value: Any) -> None:
        # Format first so a failing __repr__ leaves the counters untouched
        text = printable(value)
        self.result_count += 1
        index = (self.line_count - 1) + self.result_count
        self.entries.insert(index, TranscriptEntry(kind=EntryKind.RESULT, text=text))

    def add_console(self, text: str) -> None:
        self.console.append(text)

    def build(self) -> Transcript:
        return self.entries + [
            TranscriptEntry(kind=EntryKind.OUTPUT, text=text) for text in self.console
        ]


def intercept_results(delegate: EvalHook, builder: TranscriptBuilder) -> EvalHook:
    """
    Wrap an evaluation hook so every completed call is counted and its result recorded.

    Args:
        delegate: Hook doing the actual evaluation
        builder: Transcript receiving result entries

    Returns:
        Hook with the same signature. Outcomes are forwarded unchanged, except
        a result whose printable form cannot be built, which is reported as a
        StatementEvaluationError instead
    """

    def intercepting_eval(
        statement: str,
        context: dict[str, Any],
        filename: str,
        callback: EvalCallback,
    ) -> None:
        def record(error: BaseException | None = None, result: Any = None) -> None:
            builder.line_count += 1
            if result is not None:
                try:
                    builder.add_result(result)
                except Exception as e:
                    error, result = StatementEvaluationError(statement, e), None
            callback(error, result)

        delegate(statement, context, filename, record)

    return intercepting_eval


def _discard_result(value: Any) -> None:
    # Results are captured by the evaluation hook, not printed
    return None


class InterpreterEngine:
    """
    Interprets code blocks, one fresh REPL session per call.

    Not safe for concurrent interpret() calls on the same instance.

    Args:
        diagnostics: Sink for progress lines and captured console output
        config: livepad configuration
    """

    def __init__(
        self,
        diagnostics: DiagnosticsSink | None = None,
        config: LivepadConfig | None = None,
    ):
        self.diagnostics = diagnostics or LoggingDiagnostics()
        self.config = config or default_config
        self.evaluators = EvaluatorSlots()

    def _capture_console(self, builder: TranscriptBuilder, chunk: str) -> None:
        text = chunk.strip()
        if text in REPL_CHROME:
            return
        builder.add_console(text)
        self.diagnostics.append_line(f"  {text}")

    async def interpret(self, code: str) -> Transcript:
        """
        Interpret a code block.

        Args:
            code: Source text, possibly several lines

        Returns:
            Transcript of code, result and output entries

        Raises:
            EvaluationSetupError: If the session or its channels could not be set up
        """
        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()
        builder = TranscriptBuilder()

        try:
            timestamp = datetime.now().strftime("%H:%M:%S")
            self.diagnostics.append_line(f"[{timestamp}] starting to interpret {len(code)} bytes of code")

            input_channel = InputChannel()
            output_channel = OutputChannel(lambda chunk: self._capture_console(builder, chunk))

            session = start(
                prompt="",
                input=input_channel,
                output=output_channel,
                writer=_discard_result,
                filename=self.config.filename,
            )

            if self.evaluators.default_evaluator is None:
                self.evaluators.default_evaluator = session.eval

            self.evaluators.active_evaluator = intercept_results(self.evaluators.default_evaluator, builder)
            session.eval = self.evaluators.active_evaluator

            if self.config.rewrite_imports:
                code = rewrite_imports(code)

            for line in split_lines(code):
                input_channel.push(f"{line}\n")
                builder.add_code(line)

            def on_end() -> None:
                if not finished.done():
                    finished.set_result(None)

            input_channel.on("end", on_end)
            input_channel.push(None)
        except Exception as e:
            logger.error(f"Failed to set up REPL session: {e}")
            raise EvaluationSetupError(f"Failed to set up REPL session: {e}") from e

        await finished

        logger.debug(
            f"Interpreted {builder.line_count} statements, "
            f"{builder.result_count} results, {len(builder.console)} console lines"
        )
        return builder.build()
