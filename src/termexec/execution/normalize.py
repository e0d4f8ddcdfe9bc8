"""Normalization of raw terminal exit signals."""

from __future__ import annotations

from dataclasses import dataclass

from termexec.terminal.protocol import ExitDetails

NOT_SUCCESSFUL = "Command execution was not successful, inspect the cause and adjust as needed."
UNKNOWN_EXIT_STATUS = "Exit code: <undefined, notify user>"
UNKNOWN_STATUS_NOTE = (
    "<exit code is undefined: terminal output and command execution status is unknown.>"
)


@dataclass(frozen=True)
class NormalizedExit:
    """Success flag and report fragment for a completed command.

    Attributes:
        succeeded: True only for exit code 0.
        exit_status: Report fragment describing the exit.
        failure_reason: Same as exit_status for failures, None on success.
        output_note: Text appended to the output when the status is unknown.
    """

    succeeded: bool
    exit_status: str
    failure_reason: str | None = None
    output_note: str = ""


def normalize_exit(details: ExitDetails | None) -> NormalizedExit:
    """Map a terminal completion signal onto a normalized exit.

    Depends only on the completion signal, never on the output seen so far.
    """
    if details is None:
        return NormalizedExit(
            succeeded=False,
            exit_status=UNKNOWN_EXIT_STATUS,
            failure_reason=UNKNOWN_EXIT_STATUS,
            output_note=UNKNOWN_STATUS_NOTE,
        )

    if details.exit_code == 0:
        return NormalizedExit(succeeded=True, exit_status="Exit code: 0")

    if details.exit_code is not None:
        status = f"{NOT_SUCCESSFUL}\nExit code: {details.exit_code}"
        return NormalizedExit(succeeded=False, exit_status=status, failure_reason=status)

    if details.signal_name:
        status = f"Process terminated by signal {details.signal_name}"
        if details.core_dump_possible:
            status += " - core dump possible"
        return NormalizedExit(succeeded=False, exit_status=status, failure_reason=status)

    return normalize_exit(None)


def format_timeout(timeout_ms: int) -> str:
    """Render a millisecond timeout in seconds with one decimal (100 -> "0.1")."""
    return f"{timeout_ms / 1000:.1f}"
