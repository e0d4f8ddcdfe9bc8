"""Terminal backend protocols.

The orchestrator is written against these protocols only. Implementations:
- SubprocessTerminal: plain spawned process (PLAIN provider)
- ACPTerminal: IDE terminal via the Agent Client Protocol (INTEGRATED provider)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class ProviderKind(Enum):
    """Kind of terminal backend."""

    INTEGRATED = "integrated"  # Shell-integration-capable terminal
    PLAIN = "plain"  # Plain spawned process


class ShellIntegrationError(Exception):
    """Raised when an integrated terminal cannot run the command.

    The caller may retry the command on the PLAIN provider.
    """


@dataclass(frozen=True)
class ExitDetails:
    """Raw completion signal reported by a terminal."""

    exit_code: int | None = None
    signal_name: str | None = None
    core_dump_possible: bool = False


@runtime_checkable
class ProcessHandle(Protocol):
    """Ownership token for a running command."""

    def continue_(self) -> None:
        """Detach: stop reporting, leave the process running."""
        ...

    def abort(self) -> None:
        """Forcibly terminate the process."""
        ...


class TerminalCallbacks(Protocol):
    """Callback surface a terminal drives while a command runs.

    Callbacks are invoked on the event loop thread, in this order:
    on_line (zero or more), on_shell_execution_started, on_completed,
    on_shell_execution_complete. on_no_shell_integration replaces the
    sequence when an integrated terminal cannot run the command.
    """

    def on_line(self, text: str, process: ProcessHandle) -> None: ...

    def on_shell_execution_started(self, pid: int | None, process: ProcessHandle) -> None: ...

    def on_completed(self, output: str | None, process: ProcessHandle) -> None: ...

    def on_shell_execution_complete(self, details: ExitDetails, process: ProcessHandle) -> None: ...

    def on_no_shell_integration(self, message: str, process: ProcessHandle) -> None: ...


@runtime_checkable
class TerminalHandle(Protocol):
    """A terminal borrowed from the registry for one call."""

    provider: ProviderKind
    session_id: str | None

    @property
    def busy(self) -> bool:
        """True while a command is running (including detached commands)."""
        ...

    def get_current_working_directory(self) -> str:
        """Directory the shell is in now, which may differ from the launch directory."""
        ...

    def run_command(self, command: str, callbacks: TerminalCallbacks) -> ProcessHandle:
        """Start a command and return its process handle without waiting."""
        ...
