"""
Tests for the interpreter engine.

Covers transcript ordering, console capture, import rewriting on the way in,
and session lifecycle across calls.
"""
import sys

import pytest

from livepad.config import LivepadConfig
from livepad.diagnostics import MemoryDiagnostics
from livepad.repl import interpreter as interpreter_module
from livepad.repl.interpreter import (
    InterpreterEngine,
    TranscriptBuilder,
    intercept_results,
    split_lines,
)
from livepad.types import (
    EntryKind,
    EvaluationSetupError,
    StatementEvaluationError,
    TranscriptEntry,
)

CODE = EntryKind.CODE
RESULT = EntryKind.RESULT
OUTPUT = EntryKind.OUTPUT


def pairs(transcript):
    return [(entry.kind, entry.text) for entry in transcript]


@pytest.fixture
def diagnostics():
    return MemoryDiagnostics()


@pytest.fixture
def engine(diagnostics):
    return InterpreterEngine(diagnostics=diagnostics, config=LivepadConfig())


class TestTranscriptOrdering:
    """Code and result entry placement."""

    @pytest.mark.asyncio
    async def test_results_follow_their_lines(self, engine):
        transcript = await engine.interpret("1 + 1\nx = 5\nx * 2")

        assert pairs(transcript) == [
            (CODE, "1 + 1"),
            (RESULT, "2"),
            (CODE, "x = 5"),
            (CODE, "x * 2"),
            (RESULT, "10"),
        ]

    @pytest.mark.asyncio
    async def test_every_line_producing_a_result(self, engine):
        transcript = await engine.interpret("1\n2\n3")

        assert pairs(transcript) == [
            (CODE, "1"), (RESULT, "1"),
            (CODE, "2"), (RESULT, "2"),
            (CODE, "3"), (RESULT, "3"),
        ]

    @pytest.mark.asyncio
    async def test_no_results_keeps_code_lines_in_order(self, engine):
        lines = ["a = 1", "b = a + 1", "c = [a, b]", "del c"]

        transcript = await engine.interpret("\n".join(lines))

        assert pairs(transcript) == [(CODE, line) for line in lines]

    @pytest.mark.asyncio
    async def test_blank_lines_are_kept(self, engine):
        transcript = await engine.interpret("a = 1\n\n\nb = 2\n")

        assert pairs(transcript) == [
            (CODE, "a = 1"),
            (CODE, ""),
            (CODE, ""),
            (CODE, "b = 2"),
            (CODE, ""),
        ]

    @pytest.mark.asyncio
    async def test_crlf_line_breaks(self, engine):
        transcript = await engine.interpret("a = 1\r\nb = 2\r\na + b")

        assert pairs(transcript) == [
            (CODE, "a = 1"),
            (CODE, "b = 2"),
            (CODE, "a + b"),
            (RESULT, "3"),
        ]

    @pytest.mark.asyncio
    async def test_multiline_statement(self, engine):
        transcript = await engine.interpret("def f():\n    return 3\n\nf()")

        assert pairs(transcript) == [
            (CODE, "def f():"),
            (CODE, "    return 3"),
            (CODE, ""),
            (CODE, "f()"),
            (RESULT, "3"),
        ]

    @pytest.mark.asyncio
    async def test_results_use_printable_form(self, engine):
        transcript = await engine.interpret("'abc'\n[1, 'two']")

        assert [entry.text for entry in transcript if entry.kind == RESULT] == ["'abc'", "[1, 'two']"]

    @pytest.mark.asyncio
    async def test_none_value_has_no_result(self, engine):
        transcript = await engine.interpret("None\nprint")

        assert [entry.kind for entry in transcript] == [CODE, CODE, RESULT]

    @pytest.mark.asyncio
    async def test_failed_statement_contributes_nothing(self, engine):
        transcript = await engine.interpret("1 / 0\n2")

        assert pairs(transcript) == [(CODE, "1 / 0"), (CODE, "2"), (RESULT, "2")]

    @pytest.mark.asyncio
    async def test_unprintable_result_does_not_shift_later_results(self, engine):
        code = "class A:\n    def __repr__(self):\n        raise ValueError('x')\n\nA()\n1\nx = 0\ny = 0"

        transcript = await engine.interpret(code)

        assert pairs(transcript) == [
            (CODE, "class A:"),
            (CODE, "    def __repr__(self):"),
            (CODE, "        raise ValueError('x')"),
            (CODE, ""),
            (CODE, "A()"),
            (CODE, "1"),
            (RESULT, "1"),
            (CODE, "x = 0"),
            (CODE, "y = 0"),
        ]

    @pytest.mark.asyncio
    async def test_empty_code_block(self, engine):
        transcript = await engine.interpret("")

        assert pairs(transcript) == [(CODE, "")]


class TestConsoleCapture:
    """Output entries from the session's output channel."""

    @pytest.mark.asyncio
    async def test_output_appended_after_code(self, engine):
        transcript = await engine.interpret('print("hello")\nx = 1\nprint("a", "b")')

        assert pairs(transcript) == [
            (CODE, 'print("hello")'),
            (CODE, "x = 1"),
            (CODE, 'print("a", "b")'),
            (OUTPUT, "hello"),
            (OUTPUT, "a b"),
        ]

    @pytest.mark.asyncio
    async def test_stdout_writes_are_captured(self, engine):
        host_stdout = sys.stdout

        transcript = await engine.interpret("import sys, pprint\nsys.stdout.write('hi\\n')\npprint.pprint([1, 2])")

        assert pairs(transcript) == [
            (CODE, "import sys, pprint"),
            (CODE, "sys.stdout.write('hi\\n')"),
            (RESULT, "3"),
            (CODE, "pprint.pprint([1, 2])"),
            (OUTPUT, "hi"),
            (OUTPUT, "[1, 2]"),
        ]
        assert sys.stdout is host_stdout

    @pytest.mark.asyncio
    async def test_chrome_is_discarded(self, engine):
        code = "\n".join([
            'print("undefined")',
            'print("...")',
            'print("")',
            'print("   ")',
            'print("  kept  ")',
        ])

        transcript = await engine.interpret(code)

        assert [entry.text for entry in transcript if entry.kind == OUTPUT] == ["kept"]

    @pytest.mark.asyncio
    async def test_console_forwarded_to_diagnostics(self, engine, diagnostics):
        await engine.interpret('print("visible")')

        assert diagnostics.lines[0].startswith("[")
        assert diagnostics.lines[0].endswith("starting to interpret 16 bytes of code")
        assert "  visible" in diagnostics.lines

    @pytest.mark.asyncio
    async def test_results_are_not_written_as_output(self, engine):
        transcript = await engine.interpret("6 * 7")

        assert pairs(transcript) == [(CODE, "6 * 7"), (RESULT, "42")]


class TestImportRewriting:
    """The block is rewritten before feeding, and the rewritten text is echoed."""

    @pytest.mark.asyncio
    async def test_code_entries_echo_rewritten_text(self, engine):
        transcript = await engine.interpret('import x from "m"\n1')

        assert pairs(transcript) == [
            (CODE, 'const { x: _default } = require("m")'),
            (CODE, "1"),
            (RESULT, "1"),
        ]

    @pytest.mark.asyncio
    async def test_rewriting_can_be_disabled(self, diagnostics):
        engine = InterpreterEngine(diagnostics=diagnostics, config=LivepadConfig(rewrite_imports=False))

        transcript = await engine.interpret('import x from "m"')

        assert pairs(transcript) == [(CODE, 'import x from "m"')]


class TestSessionLifecycle:
    """Fresh session per call, default evaluator kept."""

    @pytest.mark.asyncio
    async def test_each_call_gets_a_fresh_namespace(self, engine):
        await engine.interpret("x = 1")
        transcript = await engine.interpret("x")

        assert pairs(transcript) == [(CODE, "x")]

    @pytest.mark.asyncio
    async def test_default_evaluator_captured_once(self, engine):
        await engine.interpret("1")
        default = engine.evaluators.default_evaluator
        first_active = engine.evaluators.active_evaluator

        transcript = await engine.interpret("2")

        assert engine.evaluators.default_evaluator is default
        assert engine.evaluators.active_evaluator is not first_active
        assert pairs(transcript) == [(CODE, "2"), (RESULT, "2")]

    @pytest.mark.asyncio
    async def test_counters_reset_between_calls(self, engine):
        await engine.interpret("1\n2\n3")
        transcript = await engine.interpret("4\n5")

        assert pairs(transcript) == [(CODE, "4"), (RESULT, "4"), (CODE, "5"), (RESULT, "5")]

    @pytest.mark.asyncio
    async def test_setup_failure_raises_setup_error(self, engine, monkeypatch):
        def failing_start(**kwargs):
            raise RuntimeError("no session")

        monkeypatch.setattr(interpreter_module, "start", failing_start)

        with pytest.raises(EvaluationSetupError) as exc_info:
            await engine.interpret("1")

        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestResultInterception:
    """intercept_results and TranscriptBuilder without a session."""

    def test_index_rule_with_late_results(self):
        builder = TranscriptBuilder()
        for line in ["a", "b", "c"]:
            builder.add_code(line)
        hook = intercept_results(lambda s, ctx, fn, cb: cb(None, s.strip() or None), builder)
        forwarded = []

        for statement in ["one", "", "three"]:
            hook(statement, {}, "<test>", lambda error, result: forwarded.append((error, result)))

        assert [entry.text for entry in builder.entries] == ["a", "'one'", "b", "c", "'three'"]
        assert builder.line_count == 3
        assert builder.result_count == 2
        assert forwarded == [(None, "one"), (None, None), (None, "three")]

    def test_errors_forwarded_unchanged(self):
        builder = TranscriptBuilder()
        failure = ValueError("bad")
        hook = intercept_results(lambda s, ctx, fn, cb: cb(failure, None), builder)
        forwarded = []

        hook("x", {}, "<test>", lambda error, result: forwarded.append((error, result)))

        assert forwarded == [(failure, None)]
        assert builder.line_count == 1
        assert builder.entries == []

    def test_unprintable_result_becomes_error(self):
        class Unprintable:
            def __repr__(self):
                raise ValueError("no repr")

        builder = TranscriptBuilder()
        builder.add_code("u")
        hook = intercept_results(lambda s, ctx, fn, cb: cb(None, Unprintable()), builder)
        forwarded = []

        hook("u\n", {}, "<test>", lambda error, result: forwarded.append((error, result)))

        [(error, result)] = forwarded
        assert isinstance(error, StatementEvaluationError)
        assert isinstance(error.error, ValueError)
        assert result is None
        assert builder.line_count == 1
        assert builder.result_count == 0
        assert [entry.text for entry in builder.entries] == ["u"]

    def test_build_appends_console_after_entries(self):
        builder = TranscriptBuilder()
        builder.add_console("first")
        builder.add_code("line")
        builder.add_console("second")

        assert builder.build() == [
            TranscriptEntry(kind=CODE, text="line"),
            TranscriptEntry(kind=OUTPUT, text="first"),
            TranscriptEntry(kind=OUTPUT, text="second"),
        ]


@pytest.mark.parametrize(
    "code,expected",
    [
        ("", [""]),
        ("a", ["a"]),
        ("a\nb", ["a", "b"]),
        ("a\r\nb\n", ["a", "b", ""]),
        ("a\rb", ["a\rb"]),
    ],
)
def test_split_lines(code, expected):
    assert split_lines(code) == expected
