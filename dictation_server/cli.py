"""Command-line interface for the dictation server.

WHY: Operators need one command to start the API, and developers need a
way to check how a recorded stream of recognizer messages merges into
text without a browser or a microphone.

HOW: argparse with two subcommands. ``serve`` configures logging and
starts the FastAPI app under uvicorn. ``replay`` reads a JSON-lines file
of recognizer messages (one Deepgram ``Results`` object per line), feeds
each one through a TranscriptMerger exactly as the live session does,
and prints the final text to stdout.

RULES:
- Final replay text goes to stdout; status and --trace output go to stderr
- Blank lines in a replay file are skipped
- Lines that are not recognizer results are reported and skipped
- A missing replay file exits with status 1
- Python 3.9+ compatible (no match/case, no X | Y unions)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from dictation_server import __version__
from dictation_server.config import LOG_LEVEL
from dictation_server.core.events import SegmentEvent, parse_client_message
from dictation_server.core.merge import TranscriptMerger


def _status(msg: str) -> None:
    """Print a status message to stderr.

    RULES:
    - All status messages go to stderr
    - Always flush after writing
    """
    print(msg, file=sys.stderr, flush=True)


def replay_lines(lines: List[str], trace: Optional[TextIO] = None) -> str:
    """Merge recognizer messages into the final transcript text.

    WHY: Lets a captured session be replayed deterministically, which is
    how merge behaviour is reproduced outside the browser.

    HOW: Each non-blank line is parsed like a WebSocket frame. Segment
    events go to the merger (finals committed, partials replacing the
    previous partial); everything else is reported and skipped.

    Args:
        lines: Raw lines of a JSON-lines file.
        trace: When given, the merger text is written here after every event.

    Returns:
        The merger text after the last line.
    """
    merger = TranscriptMerger()
    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        event = parse_client_message(line)
        if not isinstance(event, SegmentEvent):
            _status("  Line {}: not a recognizer result, skipped".format(number))
            continue
        if not event.transcript:
            continue
        if event.is_final:
            merger.commit_final_segment(event.transcript)
        else:
            merger.update_partial(event.transcript)
        if trace is not None:
            kind = "final" if event.is_final else "partial"
            print("[{}] {}: {}".format(number, kind, merger.get_text()), file=trace, flush=True)
    return merger.get_text()


def _run_replay(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.is_file():
        print("Error: File not found: {}".format(path), file=sys.stderr)
        return 1
    lines = path.read_text(encoding="utf-8").splitlines()
    _status("Replaying {} line(s) from {}".format(len(lines), path.name))
    text = replay_lines(lines, trace=sys.stderr if args.trace else None)
    print(text)
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    from dictation_server.server.app import run_api

    run_api(host=args.host, port=args.port, log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - serve: --host, --port, --log-level
    - replay: positional FILE, --trace
    """
    parser = argparse.ArgumentParser(
        prog="dictation-server",
        description="Live dictation backend: run the API or replay recognizer output.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s {}".format(__version__))
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP/WebSocket API with uvicorn.")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address (default: %(default)s).")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: %(default)s).")
    serve.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        help="Logging level (default: %(default)s, from LOG_LEVEL).",
    )
    serve.set_defaults(func=_run_serve)

    replay = subparsers.add_parser(
        "replay",
        help="Merge a JSON-lines file of recognizer messages and print the text.",
    )
    replay.add_argument("file", help="Path to a .jsonl file, one recognizer message per line.")
    replay.add_argument(
        "--trace",
        action="store_true",
        help="Print the merged text after every message to stderr.",
    )
    replay.set_defaults(func=_run_replay)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    code = args.func(args)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
