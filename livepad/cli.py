"""Command line entry point for livepad.

Usage:
    livepad run notes.py
    livepad run notes.py --json
    cat notes.py | livepad run -
    livepad watch notes.py --interval 0.5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import LivepadConfig
from .diagnostics import LoggingDiagnostics
from .live import LiveInterpreter
from .render import render_transcript
from .repl.interpreter import InterpreterEngine
from .types import transcript_to_json

logger = logging.getLogger(__name__)

SEPARATOR = "-" * 40


def inserted_text(previous: str, current: str) -> str:
    """
    Text inserted between two versions of a document.

    Strips the common prefix and suffix; whatever remains of the current
    version is the edit.
    """
    prefix = 0
    limit = min(len(previous), len(current))
    while prefix < limit and previous[prefix] == current[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < limit - prefix
        and previous[len(previous) - 1 - suffix] == current[len(current) - 1 - suffix]
    ):
        suffix += 1

    return current[prefix:len(current) - suffix]


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text()


async def run_command(args: argparse.Namespace, config: LivepadConfig) -> int:
    engine = InterpreterEngine(diagnostics=LoggingDiagnostics(), config=config)
    transcript = await engine.interpret(_read_source(args.file))

    if args.json:
        print(transcript_to_json(transcript))
    else:
        print(render_transcript(transcript, config.result_prefix).document)
    return 0


async def watch_command(args: argparse.Namespace, config: LivepadConfig) -> int:
    path = Path(args.file)
    engine = InterpreterEngine(diagnostics=LoggingDiagnostics(), config=config)

    def publish(document: str) -> None:
        print(SEPARATOR)
        print(document, flush=True)

    live = LiveInterpreter(engine, publish, config=config)
    previous = path.read_text()
    await live.interpret(previous)

    try:
        while True:
            await asyncio.sleep(args.interval)
            current = path.read_text()
            if current == previous:
                continue
            delta = inserted_text(previous, current)
            previous = current
            await live.on_change(delta, current)
    finally:
        await live.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livepad",
        description="Interpret a code block line by line and show results inline",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Config file path")
    parser.add_argument("--no-rewrite", action="store_true", help="Do not rewrite ES module imports")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Interpret a file once")
    run.add_argument("file", help="Source file, or - for stdin")
    run.add_argument("--json", action="store_true", help="Print the transcript as JSON")

    watch = subparsers.add_parser("watch", help="Re-interpret a file as it changes")
    watch.add_argument("file", help="Source file")
    watch.add_argument("--interval", type=float, default=1.0, help="Polling interval in seconds")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = LivepadConfig.load(args.config)
    if args.no_rewrite:
        config.rewrite_imports = False

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    commands = {"run": run_command, "watch": watch_command}

    try:
        return asyncio.run(commands[args.command](args, config))
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
