"""Render a transcript into text for display."""

from __future__ import annotations

from dataclasses import dataclass

from .types import EntryKind, Transcript


@dataclass
class RenderedTranscript:
    """Transcript as text: code with inline results, and console output."""

    code: str
    console: str

    @property
    def document(self) -> str:
        """Code first, console output in a trailing block comment."""
        return f"{self.code}\n\n/*\n{self.console}\n*/"


def render_transcript(transcript: Transcript, result_prefix: str = "// ") -> RenderedTranscript:
    """
    Render a transcript.

    Args:
        transcript: Entries from InterpreterEngine.interpret()
        result_prefix: Marker put in front of result lines

    Returns:
        RenderedTranscript
    """
    code = "\n".join(
        f"{result_prefix if entry.kind == EntryKind.RESULT else ''}{entry.text}"
        for entry in transcript
        if entry.kind != EntryKind.OUTPUT
    )
    console = "\n".join(entry.text for entry in transcript if entry.kind == EntryKind.OUTPUT)
    return RenderedTranscript(code=code, console=console)
