"""termexec: run agent shell commands and reduce their lifecycle to one report."""

__version__ = "0.1.0"

# Public API
from termexec.config import Config, TerminalConfig, get_config, load_config
from termexec.events import (
    COMMAND_EXECUTED,
    CommandExecutedEvent,
    CommandExecutionStatus,
    EventEmitter,
)
from termexec.execution import (
    CommandExecutor,
    ExecutionContext,
    ExecutionRequest,
    InterruptPolicy,
    execute_command,
)
from termexec.history import CommandHistory
from termexec.operator import AskAbandoned, AskResponse
from termexec.terminal import (
    Disposition,
    ExecutionOutcome,
    OutcomeKind,
    ProviderKind,
    ShellIntegrationError,
    SubprocessTerminal,
    TerminalRegistry,
)

__all__ = [
    # Main entry points
    "execute_command",
    "CommandExecutor",
    "ExecutionContext",
    "ExecutionRequest",
    "InterruptPolicy",
    # Outcomes and events
    "ExecutionOutcome",
    "OutcomeKind",
    "Disposition",
    "COMMAND_EXECUTED",
    "CommandExecutedEvent",
    "CommandExecutionStatus",
    "EventEmitter",
    "CommandHistory",
    # Operator channel
    "AskResponse",
    "AskAbandoned",
    # Terminals
    "ProviderKind",
    "ShellIntegrationError",
    "SubprocessTerminal",
    "TerminalRegistry",
    # Config
    "Config",
    "TerminalConfig",
    "load_config",
    "get_config",
]
