"""REPL Layer - sessions, channels, import rewriting and the interpreter engine."""

from .import_rewriter import rewrite_imports
from .interpreter import EvaluatorSlots, InterpreterEngine, TranscriptBuilder, intercept_results
from .session import ReplSession, make_default_eval, start
from .streams import InputChannel, OutputChannel

__all__ = [
    "EvaluatorSlots",
    "InputChannel",
    "InterpreterEngine",
    "OutputChannel",
    "ReplSession",
    "TranscriptBuilder",
    "intercept_results",
    "make_default_eval",
    "rewrite_imports",
    "start",
]
