"""Terminal backends for shell command execution.

Provides the protocols the orchestrator depends on, a plain subprocess
backend, an IDE terminal backend over ACP, and the terminal registry.
"""

from termexec.terminal.output import compress_terminal_output
from termexec.terminal.protocol import (
    ExitDetails,
    ProcessHandle,
    ProviderKind,
    ShellIntegrationError,
    TerminalCallbacks,
    TerminalHandle,
)
from termexec.terminal.registry import TerminalRegistry, TerminalSource
from termexec.terminal.result import Disposition, ExecutionOutcome, OutcomeKind
from termexec.terminal.subprocess_terminal import SubprocessTerminal

__all__ = [
    "Disposition",
    "ExecutionOutcome",
    "ExitDetails",
    "OutcomeKind",
    "ProcessHandle",
    "ProviderKind",
    "ShellIntegrationError",
    "SubprocessTerminal",
    "TerminalCallbacks",
    "TerminalHandle",
    "TerminalRegistry",
    "TerminalSource",
    "compress_terminal_output",
]

# ACPTerminal is imported separately from termexec.terminal.acp_terminal
