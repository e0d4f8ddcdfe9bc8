"""Command-line interface for termexec."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import os
from collections.abc import Sequence

from rich.console import Console

from termexec import __version__
from termexec.config import load_config
from termexec.events import EventEmitter
from termexec.execution import CommandExecutor, ExecutionContext
from termexec.history import CommandHistory
from termexec.logging import get_logger, setup_logging
from termexec.terminal import TerminalRegistry

console = Console()
log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="termexec",
        description="Run a shell command and report how it ended",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "--cwd",
        help="Working directory, absolute or relative to the current directory",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        metavar="MS",
        help="Abort the command after this many milliseconds (0 disables)",
    )
    parser.add_argument(
        "--line-limit",
        type=int,
        metavar="N",
        help="Keep at most N lines of output in the report",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the command described by parsed arguments. Returns an exit code."""
    base_dir = os.getcwd()
    config = load_config(project_root=base_dir)

    logging_config = config.logging
    if args.verbose:
        logging_config = dataclasses.replace(logging_config, verbose=2 + args.verbose)
    setup_logging(logging_config)

    # No IDE attached: always run through plain subprocesses
    terminal_config = dataclasses.replace(config.terminal, shell_integration_disabled=True)
    if args.line_limit is not None:
        terminal_config = dataclasses.replace(terminal_config, output_line_limit=args.line_limit)

    events = EventEmitter()
    history = CommandHistory(max_entries=config.history.max_entries)
    history.attach(events)

    session_id = f"cli-{os.getpid()}"
    context = ExecutionContext(
        cwd=base_dir,
        session_id=session_id,
        registry=TerminalRegistry(),
        events=events,
    )
    executor = CommandExecutor(context=context, config=terminal_config)

    command = " ".join(args.command)
    _, report = await executor.execute(command, cwd=args.cwd, timeout_ms=args.timeout)
    console.print(report, markup=False, highlight=False, soft_wrap=True)

    record = history.last(session_id)
    return 0 if record is not None and record.event.succeeded else 1


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    if not " ".join(args.command).strip():
        parser.error("a command is required")

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130
