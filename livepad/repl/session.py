"""
REPL session - a line-oriented Python interpreter driven through channels.

start() binds a fresh namespace to an InputChannel and an OutputChannel. Each
line read from the input triggers one call of the session's ``eval`` hook with
the statement buffered so far. The hook reports back through a callback:

    eval(statement, context, filename, callback)
    callback(error, result)

A RecoverableStatement error means "incomplete, keep reading"; the session
then shows the continuation prompt. ``eval`` is a plain attribute and can be
replaced to intercept results.
"""

from __future__ import annotations

import ast
import codeop
import contextlib
import logging
from typing import Any, Callable

from ..types import RecoverableStatement, StatementEvaluationError, printable
from .streams import InputChannel, OutputChannel

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "<livepad>"
CONTINUATION_PROMPT = "..."

EvalCallback = Callable[..., None]
EvalHook = Callable[[str, dict, str, EvalCallback], None]
Writer = Callable[[Any], Any]


def _run_statement(statement: str, context: dict[str, Any], filename: str) -> Any:
    """Execute a complete statement, returning the value of a trailing expression."""
    tree = ast.parse(statement, filename, "exec")
    if not tree.body or not isinstance(tree.body[-1], ast.Expr):
        exec(compile(tree, filename, "exec"), context)
        return None

    *preceding, last = tree.body
    if preceding:
        exec(compile(ast.Module(body=preceding, type_ignores=[]), filename, "exec"), context)
    return eval(compile(ast.Expression(body=last.value), filename, "eval"), context)


def make_default_eval() -> EvalHook:
    """
    Build the default evaluation hook.

    The hook only touches its arguments, so one session's hook can evaluate
    statements for any other session's context.
    """

    def default_eval(
        statement: str,
        context: dict[str, Any],
        filename: str,
        callback: EvalCallback,
    ) -> None:
        if not statement.strip():
            callback(None, None)
            return

        # Completeness is judged without the final newline, so a compound
        # statement stays open until a blank line arrives.
        try:
            code = codeop.compile_command(statement.removesuffix("\n"), filename, "single")
        except (SyntaxError, OverflowError, ValueError) as e:
            callback(StatementEvaluationError(statement, e), None)
            return

        if code is None:
            callback(RecoverableStatement(statement), None)
            return

        try:
            result = _run_statement(statement, context, filename)
        except Exception as e:
            callback(StatementEvaluationError(statement, e), None)
            return

        callback(None, result)

    return default_eval


class ReplSession:
    """
    One live binding of the interpreter to its input and output channels.

    Attributes:
        prompt: Primary prompt written after each completed statement
        context: Namespace statements run in
        eval: Evaluation hook, replaceable
        writer: Formats non-None results; a returned string goes to output
        on_error: Receives errors of failed statements
        closed: True once the input channel ended
    """

    def __init__(
        self,
        prompt: str,
        input: InputChannel,
        output: OutputChannel,
        writer: Writer | None = None,
        filename: str = DEFAULT_FILENAME,
    ):
        self.prompt = prompt
        self.input = input
        self.output = output
        self.writer: Writer = writer if writer is not None else printable
        self.filename = filename
        self.closed = False
        self.on_error: Callable[[BaseException], None] = self._report_error

        self._console = output.writer()
        self.context = self._create_context()
        self.eval: EvalHook = make_default_eval()

        self._buffered = ""
        self._partial = ""

        input.on("data", self._on_data)
        input.on("end", self._on_end)

        self._display_prompt()

    def _create_context(self) -> dict[str, Any]:
        return {"__name__": "__console__", "__doc__": None}

    @property
    def buffered_statement(self) -> str:
        """Incomplete statement waiting for more lines."""
        return self._buffered

    def _display_prompt(self, prompt: str | None = None) -> None:
        self.output.write(self.prompt if prompt is None else prompt)

    def _report_error(self, error: BaseException) -> None:
        logger.warning(f"Statement failed: {error}")

    def _on_data(self, chunk: str) -> None:
        lines = (self._partial + chunk).split("\n")
        self._partial = lines.pop()
        for line in lines:
            self._on_line(line)

    def _on_line(self, line: str) -> None:
        statement = self._buffered + line + "\n"

        def finish(error: BaseException | None = None, result: Any = None) -> None:
            self._console.flush()

            if isinstance(error, RecoverableStatement):
                self._buffered = statement
                self._display_prompt(CONTINUATION_PROMPT)
                return

            self._buffered = ""
            if error is not None:
                self.on_error(error)
            elif result is not None:
                self.context["_"] = result
                try:
                    text = self.writer(result)
                except Exception as e:
                    self.on_error(e)
                else:
                    if isinstance(text, str):
                        self.output.write(text + "\n")

            self._display_prompt()

        # Anything evaluated code writes to sys.stdout lands in the output channel
        try:
            with contextlib.redirect_stdout(self._console):
                self.eval(statement, self.context, self.filename, finish)
        except Exception as e:
            self._buffered = ""
            self.on_error(e)

    def _on_end(self) -> None:
        if self._partial:
            self._on_line(self._partial)
            self._partial = ""
        if self._buffered:
            logger.debug(f"Dropping incomplete statement at end of input: {self._buffered!r}")
            self._buffered = ""
        self._console.flush()
        self.closed = True


def start(
    prompt: str = "> ",
    input: InputChannel | None = None,
    output: OutputChannel | None = None,
    writer: Writer | None = None,
    filename: str = DEFAULT_FILENAME,
) -> ReplSession:
    """
    Start a REPL session.

    Args:
        prompt: Primary prompt
        input: Channel statements are read from
        output: Channel prompts, console text and written results go to
        writer: Result formatter (default: repr)
        filename: Filename used when compiling statements

    Returns:
        The running ReplSession
    """
    if input is None or output is None:
        raise ValueError("start() needs both an input and an output channel")
    return ReplSession(prompt, input, output, writer=writer, filename=filename)
