"""livepad: interpret a code block line by line and get back a transcript.

- REPL: sessions driven through input/output channels, result interception
- Import rewriting: ES module imports into require() calls
- Live: debounced re-interpretation as a document is edited
"""

__version__ = "0.1.0"

from .config import LivepadConfig, default_config
from .diagnostics import DiagnosticsSink, LoggingDiagnostics, MemoryDiagnostics
from .live import LiveInterpreter
from .render import RenderedTranscript, render_transcript
from .repl import InterpreterEngine, rewrite_imports
from .types import (
    EntryKind,
    EvaluationSetupError,
    LivepadError,
    RecoverableStatement,
    StatementEvaluationError,
    Transcript,
    TranscriptEntry,
)

__all__ = [
    "DiagnosticsSink",
    "EntryKind",
    "EvaluationSetupError",
    "InterpreterEngine",
    "LiveInterpreter",
    "LivepadConfig",
    "LivepadError",
    "LoggingDiagnostics",
    "MemoryDiagnostics",
    "RecoverableStatement",
    "RenderedTranscript",
    "StatementEvaluationError",
    "Transcript",
    "TranscriptEntry",
    "default_config",
    "render_transcript",
    "rewrite_imports",
]
