"""
Transcript data model and error types for livepad.

A transcript is the ordered result of interpreting one code block: echoed
code lines, the printable values statements produced, and console output
captured while they ran.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, TypeAdapter


class EntryKind(str, Enum):
    """Kind of a transcript entry."""

    CODE = "code"
    RESULT = "result"
    OUTPUT = "output"


class TranscriptEntry(BaseModel):
    """One line of a transcript."""

    kind: EntryKind
    text: str


Transcript = list[TranscriptEntry]

_transcript_adapter = TypeAdapter(Transcript)


def code_entries(transcript: Transcript) -> Transcript:
    """Entries echoing input lines, in push order."""
    return [entry for entry in transcript if entry.kind == EntryKind.CODE]


def result_entries(transcript: Transcript) -> Transcript:
    """Entries holding evaluated values."""
    return [entry for entry in transcript if entry.kind == EntryKind.RESULT]


def output_entries(transcript: Transcript) -> Transcript:
    """Entries holding console output, in arrival order."""
    return [entry for entry in transcript if entry.kind == EntryKind.OUTPUT]


def transcript_to_json(transcript: Transcript, indent: int | None = 2) -> str:
    """Serialize a transcript to a JSON array of {kind, text} objects."""
    return _transcript_adapter.dump_json(transcript, indent=indent).decode("utf-8")


class LivepadError(Exception):
    """Base class for livepad errors."""

    pass


class EvaluationSetupError(LivepadError):
    """Building the REPL session or wiring its channels failed."""

    pass


class StatementEvaluationError(LivepadError):
    """A single statement failed to compile or raised while running.

    Handed to the session callback, never raised out of interpret().
    """

    def __init__(self, statement: str, error: BaseException):
        self.statement = statement
        self.error = error
        super().__init__(f"{type(error).__name__}: {error}")


class RecoverableStatement(LivepadError):
    """Statement is incomplete; the session keeps buffering lines."""

    def __init__(self, statement: str):
        self.statement = statement
        super().__init__("Incomplete statement")


def printable(value: Any) -> str:
    """Printable form of an evaluated value, as an interactive prompt shows it."""
    return repr(value)
