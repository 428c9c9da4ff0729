from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from termstream.enums import StreamState  # noqa: E402
from termstream.services import sources  # noqa: E402
from termstream.services.console_view import ConsoleView  # noqa: E402
from termstream.services.pipeline import StreamPipeline  # noqa: E402


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def _write_fragment(text: str | None) -> None:
    if text is None:
        return
    sys.stdout.write(text)
    sys.stdout.flush()


def _stream(source, screen: bool) -> int:
    sink = ConsoleView() if screen else _write_fragment
    pipeline = StreamPipeline(source, sink)
    state = asyncio.run(pipeline.run())
    if screen:
        print("\n".join(sink.screen()))
    return 0 if state is StreamState.done else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="console", description="Stream a run from the execution service")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--screen",
        action="store_true",
        help="Print the final rendered screen instead of the raw fragments.",
    )
    subparsers = parser.add_subparsers(dest="command")

    file_parser = subparsers.add_parser("run-file", help="Execute a file and stream its output")
    file_parser.add_argument("file_path")
    file_parser.set_defaults(make_source=lambda args: sources.file_run_source(args.file_path))

    cmd_parser = subparsers.add_parser("run-command", help="Execute a shell command and stream its output")
    cmd_parser.add_argument("shell_command")
    cmd_parser.add_argument("--path", default=None, help="Working directory on the execution host.")
    cmd_parser.set_defaults(
        make_source=lambda args: sources.command_run_source(args.shell_command, args.path)
    )

    args = parser.parse_args(argv)
    if not hasattr(args, "make_source"):
        parser.print_help()
        return 1
    _configure_logging(args.verbose)
    try:
        return _stream(args.make_source(args), args.screen)
    except KeyboardInterrupt:
        logging.info("Interrupted, abandoning stream")
        return 130


if __name__ == "__main__":
    sys.exit(main())
