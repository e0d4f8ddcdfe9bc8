"""Execution request and the collaborators a call runs against."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from termexec.execution.workdir import directory_exists
from termexec.terminal.output import compress_terminal_output

if TYPE_CHECKING:
    from termexec.events import CommandExecutionStatus, EventSink
    from termexec.operator import AskChannel, SayChannel
    from termexec.terminal.registry import TerminalSource


class InterruptPolicy(Enum):
    """When the operator is asked whether to interrupt a running command."""

    FIRST_OUTPUT = "first_output"  # Once, on the first line of output
    DELAYED = "delayed"  # Once, after interrupt_delay_ms while still running
    NEVER = "never"


@dataclass(frozen=True)
class ExecutionRequest:
    """One command execution. Immutable for the lifetime of the call."""

    command: str
    execution_id: str
    custom_cwd: str | None = None
    shell_integration_disabled: bool = False
    output_line_limit: int = 500
    timeout_ms: int | None = None  # None or 0 disables the timeout
    interrupt_policy: InterruptPolicy = InterruptPolicy.FIRST_OUTPUT
    interrupt_delay_ms: int = 0

    def __post_init__(self) -> None:
        if not self.command or not self.command.strip():
            raise ValueError("command must not be empty")
        if self.timeout_ms is not None and self.timeout_ms < 0:
            raise ValueError(f"timeout_ms must be >= 0, got {self.timeout_ms}")

    @property
    def timeout_seconds(self) -> float | None:
        if not self.timeout_ms:
            return None
        return self.timeout_ms / 1000


@dataclass
class ExecutionContext:
    """Caller-side collaborators for executing commands.

    Attributes:
        cwd: Base directory commands run in unless overridden.
        session_id: Identifies the caller; keys terminal reuse and events.
        registry: Source of terminals.
        events: Receives exactly one commandExecuted event per execution.
        ask: Operator question channel; None disables interruption.
        say: Operator message channel.
        exists: Async directory-existence check for override directories.
        compress: Output compressor (text, line_limit) -> text.
        on_status: Optional hook for execution progress updates.
    """

    cwd: str
    session_id: str
    registry: TerminalSource
    events: EventSink
    ask: AskChannel | None = None
    say: SayChannel | None = None
    exists: Callable[[str], Awaitable[bool]] = directory_exists
    compress: Callable[[str, int | None], str] = compress_terminal_output
    on_status: Callable[[CommandExecutionStatus], None] | None = None
